"""
Single-page application detection and ship.json synthesis.

When the API reports that a batch looks like a SPA, a ``ship.json`` that
rewrites every route to ``/index.html`` is appended to the batch. Batches
that already carry a ``ship.json`` are left alone.

Detection is best-effort: API and network failures are logged and the
deploy continues without the config. Cancellation is never swallowed.
"""

import asyncio
import json
from typing import TYPE_CHECKING, List, Optional, Sequence

from staticship.collector import calculate_md5
from staticship.errors import CancelledError, ShipError
from staticship.transport.body import is_rereadable, read_byte_source
from staticship.types import FileStatus, StaticFile
from staticship.utils.logging import get_logger
from staticship.utils.metrics import get_metrics

if TYPE_CHECKING:
    from staticship.transport import HttpTransport

logger = get_logger(__name__)

SPA_CONFIG_FILENAME = "ship.json"
SPA_CONFIG = {"rewrites": [{"source": "/(.*)", "destination": "/index.html"}]}

# Index pages larger than this are not sent for detection
MAX_INDEX_SIZE = 100 * 1024

INDEX_PATHS = ("index.html", "/index.html")


def create_spa_config() -> StaticFile:
    """Build the ship.json StaticFile; identical bytes and MD5 on every call."""
    content = json.dumps(SPA_CONFIG, indent=2).encode("utf-8")
    return StaticFile(
        path=SPA_CONFIG_FILENAME,
        content=content,
        size=len(content),
        md5=calculate_md5(content),
        status=FileStatus.READY,
    )


async def detect_spa(
    files: Sequence[StaticFile],
    transport: "HttpTransport",
    signal: Optional[asyncio.Event] = None,
) -> bool:
    """
    Ask the API whether ``files`` form a SPA.

    Returns False without a request when there is no root index.html, when
    it is too large, or when its content is a stream that reading would
    consume before upload.
    """
    index = next((f for f in files if f.path in INDEX_PATHS), None)
    if index is None:
        logger.debug("No root index.html, skipping SPA detection")
        return False
    if index.size > MAX_INDEX_SIZE:
        logger.debug(f"index.html is {index.size} bytes, skipping SPA detection")
        return False
    if not is_rereadable(index.content):
        logger.debug("index.html content is a stream, skipping SPA detection")
        return False

    html = read_byte_source(index.content, index.path).decode("utf-8", errors="replace")
    return await transport.check_spa([f.path for f in files], html, signal=signal)


async def detect_and_configure_spa(
    files: List[StaticFile],
    transport: "HttpTransport",
    signal: Optional[asyncio.Event] = None,
) -> List[StaticFile]:
    """
    Append a SPA ship.json to ``files`` when the API detects a SPA.

    Returns:
        A new list with the config appended, or ``files`` unchanged

    Raises:
        CancelledError: If the caller's signal fired during detection; a
            timed-out check is treated like any other detection failure
    """
    if any(f.path == SPA_CONFIG_FILENAME for f in files):
        logger.debug(f"{SPA_CONFIG_FILENAME} already present, skipping SPA detection")
        return files

    metrics = get_metrics()
    try:
        is_spa = await detect_spa(files, transport, signal)
    except CancelledError as e:
        if signal is not None and signal.is_set():
            raise
        logger.warning(f"SPA detection timed out, continuing without auto-config: {e.message}")
        metrics.record_spa_detection("failed")
        return files
    except ShipError as e:
        logger.warning(f"SPA detection failed, continuing without auto-config: {e.message}")
        metrics.record_spa_detection("failed")
        return files

    if not is_spa:
        metrics.record_spa_detection("not_spa")
        return files

    logger.info(f"SPA detected, adding {SPA_CONFIG_FILENAME}")
    metrics.record_spa_detection("spa")
    return [*files, create_spa_config()]
