#!/usr/bin/env python3
"""
Deploy a static site to Ship.

CLI wrapper for the staticship client providing command-line access to
deployments with file, environment and flag-based configuration.

Usage:
    python scripts/deploy.py dist/
    python scripts/deploy.py dist/ --label production --label v1.2
    python scripts/deploy.py index.html about.html --no-path-detect
    python scripts/deploy.py build/ --timeout 120 --json

Exit codes:
    0    Deployment succeeded
    1    Deployment failed (validation, API, network or configuration error)
    130  Deployment cancelled
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from staticship import Ship  # noqa: E402
from staticship.errors import CancelledError, ShipError, ValidationError  # noqa: E402
from staticship.types import DeployOptions  # noqa: E402
from staticship.utils.logging import get_logger  # noqa: E402
from staticship.validator import format_file_size  # noqa: E402

logger = get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Deploy static files to Ship",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deploy a build directory
  %(prog)s dist/

  # Deploy with labels
  %(prog)s dist/ --label production --label v1.2

  # Keep the directory structure as-is
  %(prog)s public/ --no-path-detect

  # Machine-readable output
  %(prog)s dist/ --json
        """,
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Files and/or directories to deploy",
    )

    parser.add_argument(
        "-l",
        "--label",
        action="append",
        dest="labels",
        help="Label to attach to the deployment (can specify multiple times)",
    )

    parser.add_argument(
        "--no-path-detect",
        action="store_true",
        help="Do not strip the common parent directory from upload paths",
    )

    parser.add_argument(
        "--no-spa-detect",
        action="store_true",
        help="Do not auto-configure single-page applications",
    )

    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        help="Request timeout in seconds (default: from config)",
    )

    parser.add_argument("--api-url", help="API base URL (default: from config)")
    parser.add_argument("--api-key", help="API key (default: SHIP_API_KEY)")
    parser.add_argument("--deploy-token", help="Deploy token (default: SHIP_DEPLOY_TOKEN)")
    parser.add_argument("-c", "--config", help="Configuration file (.shiprc / ship.yaml)")

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


async def run_deploy(args) -> dict:
    """Run one deployment with the parsed arguments."""
    async with Ship(
        api_url=args.api_url,
        api_key=args.api_key,
        deploy_token=args.deploy_token,
        timeout_seconds=args.timeout,
        config_file=args.config,
    ) as ship:
        options = DeployOptions(
            labels=args.labels or [],
            path_detect=not args.no_path_detect,
            spa_detect=not args.no_spa_detect,
            timeout_seconds=args.timeout,
        )
        return await ship.deploy(args.paths, options)


def print_error(error: ShipError, as_json: bool) -> None:
    """Print a typed error for humans or as JSON."""
    if as_json:
        print(json.dumps(error.to_dict(), indent=2))
        return

    print(f"❌ {error.message}")
    if isinstance(error, ValidationError):
        for issue in error.result.errors:
            print(f"  • {issue}")


def main(argv=None):
    """Main entry point for deploy CLI."""
    args = parse_args(argv)

    # Configure logging verbosity
    if args.verbose:
        logging.getLogger("staticship").setLevel(logging.DEBUG)

    missing = [p for p in args.paths if not Path(p).exists()]
    if missing:
        for path in missing:
            print(f"❌ Path not found: {path}")
        return EXIT_FAILURE

    if not args.json:
        print(f"📤 Deploying {', '.join(args.paths)}")
        if args.labels:
            print(f"   Labels: {', '.join(args.labels)}")
        print()

    try:
        deployment = asyncio.run(run_deploy(args))

    except KeyboardInterrupt:
        print("\n⚠️  Deploy cancelled by user")
        return EXIT_CANCELLED

    except CancelledError as e:
        print_error(e, args.json)
        return EXIT_CANCELLED

    except ShipError as e:
        print_error(e, args.json)
        return EXIT_FAILURE

    if args.json:
        print(json.dumps(deployment, indent=2))
        return EXIT_SUCCESS

    print("✅ Deploy successful!")
    if deployment.get("url"):
        print(f"  URL: {deployment['url']}")
    if deployment.get("deployment"):
        print(f"  Deployment: {deployment['deployment']}")
    if deployment.get("files") is not None:
        print(f"  Files: {deployment['files']}")
    if deployment.get("size") is not None:
        print(f"  Size: {format_file_size(int(deployment['size']))}")
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
