"""
Deploy orchestration.

Sequences one deploy attempt through its states:

    COLLECTING_INPUT -> VALIDATING -> (DETECTING_SPA) -> UPLOADING
        -> COMPLETED | CANCELLED | FAILED

Validation runs before any network call other than the (cached) limits
lookup; a rejected batch never reaches the transport. The upload is a single
attempt and is never retried.

Example usage:
    >>> orchestrator = DeployOrchestrator(transport, get_limits)
    >>> deployment = await orchestrator.deploy(["./dist"], DeployOptions(labels=["prod"]))
    >>> print(deployment["url"])
"""

import os
import uuid
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from staticship.collector import collect_files
from staticship.deployer.spa import detect_and_configure_spa
from staticship.errors import (
    BusinessError,
    CancelledError,
    ShipError,
    ValidationError,
    ensure_ship_error,
)
from staticship.paths import optimize_deploy_paths
from staticship.transport import HttpTransport
from staticship.types import ConfigLimits, DeployOptions, StaticFile
from staticship.utils.logging import get_logger, set_correlation_id
from staticship.validator import summarize, validate_files

logger = get_logger(__name__)

DeployInput = Union[str, "os.PathLike[str]", Sequence[Union[str, "os.PathLike[str]"]], Sequence[StaticFile]]
LimitsAccessor = Callable[[], Awaitable[ConfigLimits]]

CANCELLED_MESSAGE = "Deploy cancelled"


class DeployState(str, Enum):
    """States of a single deploy attempt."""

    COLLECTING_INPUT = "collecting_input"
    VALIDATING = "validating"
    DETECTING_SPA = "detecting_spa"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = frozenset([DeployState.COMPLETED, DeployState.CANCELLED, DeployState.FAILED])


class DeployOrchestrator:
    """
    Runs deploy attempts against a transport.

    The orchestrator keeps no per-attempt state, so concurrent deploy()
    calls on one instance do not interfere.

    Args:
        transport: Transport used for SPA detection and the upload
        get_limits: Async accessor returning the platform upload limits
    """

    def __init__(self, transport: HttpTransport, get_limits: LimitsAccessor) -> None:
        self.transport = transport
        self.get_limits = get_limits

    async def deploy(
        self, source: DeployInput, options: Optional[DeployOptions] = None
    ) -> Dict[str, Any]:
        """
        Validate, optimize and upload a deployment.

        Args:
            source: Paths to collect, or ready StaticFile records
            options: Per-attempt options (defaults when None)

        Returns:
            The deployment payload returned by the API, unmodified

        Raises:
            ValidationError: The batch was rejected locally
            CancelledError: The signal fired before the upload settled
            ShipError: Any other failure, typed
        """
        options = options or DeployOptions()
        set_correlation_id(f"deploy-{uuid.uuid4().hex[:12]}")

        def enter(state: DeployState) -> None:
            if state in TERMINAL_STATES:
                logger.info(f"Deploy finished: {state.value}")
            else:
                logger.debug(f"Deploy state -> {state.value}")
            if options.on_state_change is None:
                return
            try:
                options.on_state_change(state)
            except Exception as e:
                logger.warning(f"State change callback raised {type(e).__name__}: {e}")

        try:
            enter(DeployState.COLLECTING_INPUT)
            files = _collect(source)
            limits = await self.get_limits()

            enter(DeployState.VALIDATING)
            result = validate_files(files, limits)
            for warning in result.warnings:
                logger.warning(str(warning))
            if not result.can_deploy:
                if result.errors:
                    message = summarize(result.errors)
                else:
                    message = "No files to deploy: every file was excluded"
                raise ValidationError(message, result)

            files = _optimize_paths(result.valid_files, options.path_detect)

            if options.spa_detect:
                enter(DeployState.DETECTING_SPA)
                files = await detect_and_configure_spa(files, self.transport, options.signal)

            if options.signal is not None and options.signal.is_set():
                raise CancelledError(CANCELLED_MESSAGE)

            enter(DeployState.UPLOADING)
            deployment = await self.transport.upload(
                files,
                labels=options.labels,
                signal=options.signal,
                timeout_seconds=options.timeout_seconds,
            )
        except CancelledError as e:
            enter(DeployState.CANCELLED)
            logger.info(CANCELLED_MESSAGE)
            if options.on_cancel is not None:
                try:
                    options.on_cancel()
                except Exception as callback_error:
                    logger.warning(
                        f"Cancel callback raised {type(callback_error).__name__}: {callback_error}"
                    )
            if e.message == CANCELLED_MESSAGE:
                raise
            raise CancelledError(CANCELLED_MESSAGE) from e
        except ShipError as e:
            enter(DeployState.FAILED)
            logger.error(f"Deploy failed: {e.message}")
            raise
        except Exception as e:
            enter(DeployState.FAILED)
            raise ensure_ship_error(e) from e

        enter(DeployState.COMPLETED)
        logger.info(f"Deployed {len(files)} file(s)")
        return deployment


def _collect(source: DeployInput) -> List[StaticFile]:
    if isinstance(source, (str, os.PathLike)):
        return collect_files([source])

    items = list(source)
    if all(isinstance(item, StaticFile) for item in items):
        return [replace(item) for item in items]
    if any(isinstance(item, StaticFile) for item in items):
        raise BusinessError("Deploy input must be all paths or all StaticFile records")
    return collect_files(items)


def _optimize_paths(files: List[StaticFile], path_detect: bool) -> List[StaticFile]:
    optimized = optimize_deploy_paths([f.path for f in files], flatten=path_detect)
    return [replace(f, path=deploy_file.path) for f, deploy_file in zip(files, optimized)]
