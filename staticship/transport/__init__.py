"""
HTTP transport module.

Request lifecycle for the Ship API: timeouts, cooperative cancellation,
byte-source handling, event emission and error classification.
"""

from .body import build_deploy_body, read_byte_source
from .events import EventEmitter
from .transport import ENDPOINTS, HttpTransport, TimeoutSignal

__all__ = [
    "ENDPOINTS",
    "EventEmitter",
    "HttpTransport",
    "TimeoutSignal",
    "build_deploy_body",
    "read_byte_source",
]
