"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest
from prometheus_client import CollectorRegistry

# Add project root to path for imports
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from staticship.collector import calculate_md5  # noqa: E402
from staticship.transport import HttpTransport  # noqa: E402
from staticship.types import ConfigLimits, StaticFile  # noqa: E402
from staticship.utils.metrics import ClientMetrics  # noqa: E402
from staticship.utils.platform_config import get_platform_config  # noqa: E402

API_URL = "https://api.test.shipstatic.com"


@pytest.fixture(autouse=True)
def reset_platform_config():
    """Start every test with an empty platform limits cache."""
    get_platform_config().reset()
    yield
    get_platform_config().reset()


@pytest.fixture
def limits() -> ConfigLimits:
    """Small limits: 1 KB per file, 5 files, 3 KB total."""
    return ConfigLimits(max_file_size=1024, max_files_count=5, max_total_size=3 * 1024)


@pytest.fixture
def make_file() -> Callable[..., StaticFile]:
    """Factory for in-memory StaticFiles with a real checksum."""

    def _make(path: str, content: bytes = b"<p>hello</p>", size: Optional[int] = None) -> StaticFile:
        return StaticFile(
            path=path,
            content=content,
            size=len(content) if size is None else size,
            md5=calculate_md5(content),
        )

    return _make


@pytest.fixture
def metrics() -> ClientMetrics:
    """Metrics bound to a private registry so tests can read exact values."""
    return ClientMetrics(registry=CollectorRegistry())


@pytest.fixture
def make_transport(metrics) -> Callable[..., HttpTransport]:
    """
    Factory for an HttpTransport whose requests are answered by ``handler``.

    ``handler`` receives the httpx.Request and returns an httpx.Response; it
    may be a coroutine function.
    """

    def _make(handler, **kwargs) -> HttpTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("api_url", API_URL)
        kwargs.setdefault("metrics", metrics)
        return HttpTransport(client=client, **kwargs)

    return _make
