"""
Unit tests for the Ship client facade.

Each test gets an isolated working directory, home directory and
environment so no real config file or credential is picked up.
"""

import json

import httpx
import pytest

from staticship import Ship
from staticship.errors import AuthenticationError, BusinessError, NetworkError
from staticship.types import ConfigLimits
from staticship.utils.platform_config import PlatformConfigCache

CONFIG = {"maxFileSize": 1024 * 1024, "maxFilesCount": 100, "maxTotalSize": 10 * 1024 * 1024}
DEPLOYMENT = {"deployment": "dep-1", "url": "https://dep-1.shipstatic.test"}


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run in an empty directory with no SHIP_* variables."""
    for name in ("SHIP_API_URL", "SHIP_API_KEY", "SHIP_DEPLOY_TOKEN", "SHIP_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class FakeApi:
    """Routes requests by path and records them."""

    def __init__(self, config_failures=0):
        self.requests = []
        self.config_failures = config_failures

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == "/config":
            if self.config_failures:
                self.config_failures -= 1
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200, json=CONFIG)
        if path == "/ping":
            return httpx.Response(200, json={"success": True})
        if path == "/spa-check":
            return httpx.Response(200, json={"isSPA": False})
        if path == "/deployments" and request.method == "POST":
            return httpx.Response(200, json=DEPLOYMENT)
        if path == "/tokens" and request.method == "POST":
            return httpx.Response(200, json={"token": "token-abc", **json.loads(request.content)})
        return httpx.Response(200, json={"path": path})

    def paths(self):
        return [r.url.path for r in self.requests]

    def last(self, path):
        return [r for r in self.requests if r.url.path == path][-1]


def make_ship(api, **kwargs):
    kwargs.setdefault("platform_config", PlatformConfigCache())
    return Ship(http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)), **kwargs)


class TestAuthentication:
    """Test credential handling."""

    @pytest.mark.asyncio
    async def test_deploy_sends_api_key(self, make_file):
        """Test deploy authenticates with the API key."""
        api = FakeApi()
        ship = make_ship(api, api_key="ship-key")

        result = await ship.deploy([make_file("index.html")])

        assert result == DEPLOYMENT
        assert api.last("/deployments").headers["authorization"] == "Bearer ship-key"

    @pytest.mark.asyncio
    async def test_deploy_token_wins(self, make_file):
        """Test a deploy token takes precedence over an API key."""
        api = FakeApi()
        ship = make_ship(api, api_key="ship-key", deploy_token="token-1")

        await ship.deploy([make_file("index.html")])

        assert api.last("/deployments").headers["authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_setters_replace_credentials(self):
        """Test set_deploy_token / set_api_key switch credentials per request."""
        api = FakeApi()
        ship = make_ship(api, api_key="ship-key")

        ship.set_deploy_token("token-2")
        await ship.ping()
        assert api.last("/ping").headers["authorization"] == "Bearer token-2"

        ship.set_api_key("ship-other")
        await ship.ping()
        assert api.last("/ping").headers["authorization"] == "Bearer ship-other"

    def test_invalid_credentials_rejected(self):
        """Test empty credentials are refused."""
        ship = make_ship(FakeApi())

        with pytest.raises(BusinessError, match="API key"):
            ship.set_api_key("")
        with pytest.raises(BusinessError, match="deploy token"):
            ship.set_deploy_token("")

    @pytest.mark.asyncio
    async def test_deploy_without_credentials(self, make_file):
        """Test deploying without credentials fails before uploading."""
        api = FakeApi()
        ship = make_ship(api)

        with pytest.raises(AuthenticationError, match="credentials are required"):
            await ship.deploy([make_file("index.html")])

        assert "/deployments" not in api.paths()

    @pytest.mark.asyncio
    async def test_credentials_from_environment(self, monkeypatch, make_file):
        """Test SHIP_API_KEY is used when no credential is passed."""
        monkeypatch.setenv("SHIP_API_KEY", "ship-env")
        api = FakeApi()
        ship = make_ship(api)

        await ship.deploy([make_file("index.html")])

        assert api.last("/deployments").headers["authorization"] == "Bearer ship-env"

    def test_repr_hides_credentials(self):
        """Test the key never appears in repr."""
        ship = make_ship(FakeApi(), api_key="ship-secret")

        assert "ship-secret" not in repr(ship)


class TestInitialization:
    """Test lazy configuration and limits loading."""

    @pytest.mark.asyncio
    async def test_config_fetched_once(self):
        """Test platform limits are fetched on first use only."""
        api = FakeApi()
        ship = make_ship(api, api_key="k")

        await ship.ping()
        await ship.ping()
        limits = await ship.get_config()

        assert api.paths().count("/config") == 1
        assert limits == ConfigLimits.from_response(CONFIG)

    @pytest.mark.asyncio
    async def test_failed_init_retried(self):
        """Test a failed initialization is retried on the next call."""
        api = FakeApi(config_failures=1)
        ship = make_ship(api, api_key="k")

        with pytest.raises(NetworkError):
            await ship.ping()
        assert await ship.ping() is True
        assert api.paths().count("/config") == 2

    @pytest.mark.asyncio
    async def test_config_file_switches_api_url(self, isolated_env):
        """Test a .shiprc api URL is applied and listeners survive the switch."""
        (isolated_env / ".shiprc").write_text('{"apiUrl": "https://custom.ship.test"}')
        api = FakeApi()
        ship = make_ship(api, api_key="k")
        seen = []
        ship.on("request", lambda url, request: seen.append(url))

        await ship.ping()

        assert ship.config.api_url == "https://custom.ship.test"
        assert all(r.url.host == "custom.ship.test" for r in api.requests)
        assert "https://custom.ship.test/ping" in seen

    @pytest.mark.asyncio
    async def test_explicit_options_win(self, isolated_env, monkeypatch):
        """Test constructor options beat environment and file."""
        monkeypatch.setenv("SHIP_API_URL", "https://env.ship.test")
        (isolated_env / ".shiprc").write_text('{"apiUrl": "https://file.ship.test"}')
        api = FakeApi()
        ship = make_ship(api, api_key="k", api_url="https://option.ship.test")

        await ship.ping()

        assert {r.url.host for r in api.requests} == {"option.ship.test"}


class TestResources:
    """Test resource calls are routed through the transport."""

    @pytest.mark.asyncio
    async def test_create_token(self):
        """Test token creation sends ttl and labels."""
        api = FakeApi()
        ship = make_ship(api, api_key="k")

        result = await ship.create_token(ttl=3600, labels=["ci"])

        assert result == {"token": "token-abc", "ttl": 3600, "labels": ["ci"]}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call,path",
        [
            (lambda ship: ship.list_deployments(), "/deployments"),
            (lambda ship: ship.get_deployment("dep-1"), "/deployments/dep-1"),
            (lambda ship: ship.list_domains(), "/domains"),
            (lambda ship: ship.get_domain_dns("example.com"), "/domains/example.com/dns"),
            (lambda ship: ship.get_domain_records("example.com"), "/domains/example.com/records"),
            (lambda ship: ship.get_domain_share("example.com"), "/domains/example.com/share"),
            (lambda ship: ship.list_tokens(), "/tokens"),
            (lambda ship: ship.whoami(), "/account"),
        ],
    )
    async def test_get_routes(self, call, path):
        """Test read operations hit the expected endpoints."""
        api = FakeApi()
        ship = make_ship(api, api_key="k")

        result = await call(ship)

        assert result == {"path": path}
        assert api.requests[-1].method == "GET"

    @pytest.mark.asyncio
    async def test_domain_writes(self):
        """Test verify, validate and remove use the expected methods."""
        api = FakeApi()
        ship = make_ship(api, api_key="k")

        await ship.verify_domain("example.com")
        assert (api.requests[-1].method, api.requests[-1].url.path) == (
            "POST",
            "/domains/example.com/verify",
        )

        await ship.validate_domain("example.com")
        assert json.loads(api.requests[-1].content) == {"domain": "example.com"}

        await ship.remove_domain("example.com")
        assert api.requests[-1].method == "DELETE"

    @pytest.mark.asyncio
    async def test_context_manager(self):
        """Test the client can be used as an async context manager."""
        async with make_ship(FakeApi(), api_key="k") as ship:
            assert await ship.ping() is True
