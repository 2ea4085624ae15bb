"""
Ship client facade.

Entry point for applications: holds credentials, resolves configuration
(options > environment > config file > defaults), fetches the platform
limits once, and exposes deployments, domains, tokens and account calls.

Example usage:
    >>> from staticship import Ship
    >>>
    >>> async with Ship(api_key="ship-...") as ship:
    ...     deployment = await ship.deploy(["./dist"], labels=["production"])
    ...     print(deployment["url"])
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx

from staticship.deployer import DeployOrchestrator
from staticship.deployer.deployer import DeployInput
from staticship.errors import AuthenticationError, BusinessError
from staticship.transport import HttpTransport
from staticship.transport.events import Listener
from staticship.types import ConfigLimits, DeployOptions
from staticship.utils.config import ClientConfig
from staticship.utils.config_loader import load_config_file, resolve_config
from staticship.utils.logging import get_logger
from staticship.utils.platform_config import PlatformConfigCache, get_platform_config

logger = get_logger(__name__)


class Ship:
    """
    Client for the Ship static-hosting API.

    Args:
        api_url: API base URL
        api_key: API key (account-level credential)
        deploy_token: Single-use deploy token; wins over api_key when both are given
        timeout_seconds: Default request timeout
        config_file: Explicit config file (searched for when None)
        http_client: Pre-built httpx.AsyncClient, mainly for tests
        platform_config: Limits cache (process-wide instance when None)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        deploy_token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        config_file: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        platform_config: Optional[PlatformConfigCache] = None,
    ) -> None:
        self._options = {
            "api_url": api_url,
            "api_key": api_key,
            "deploy_token": deploy_token,
            "timeout_seconds": timeout_seconds,
        }
        self._config_file = config_file
        self._http_client = http_client
        self._platform = platform_config if platform_config is not None else get_platform_config()
        self._init_task: Optional["asyncio.Future[None]"] = None

        self._auth: Optional[Tuple[str, str]] = None
        if deploy_token:
            self._auth = ("token", deploy_token)
        elif api_key:
            self._auth = ("api_key", api_key)

        self.config: ClientConfig = resolve_config(self._options)
        self.transport = self._create_transport(self.config)

    def __repr__(self) -> str:
        auth_type = self._auth[0] if self._auth else None
        return f"Ship(api_url={self.config.api_url!r}, auth={auth_type})"

    async def __aenter__(self) -> "Ship":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def _create_transport(self, config: ClientConfig) -> HttpTransport:
        return HttpTransport(
            api_url=config.api_url,
            timeout_seconds=config.timeout_seconds,
            get_auth_headers=self._auth_headers,
            client=self._http_client,
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def set_api_key(self, key: str) -> None:
        """Authenticate with an API key, replacing any previous credential."""
        if not key or not isinstance(key, str):
            raise BusinessError("Invalid API key provided. API key must be a non-empty string.")
        self._auth = ("api_key", key)

    def set_deploy_token(self, token: str) -> None:
        """Authenticate with a deploy token, replacing any previous credential."""
        if not token or not isinstance(token, str):
            raise BusinessError(
                "Invalid deploy token provided. Deploy token must be a non-empty string."
            )
        self._auth = ("token", token)

    def has_auth(self) -> bool:
        return self._auth is not None

    def _auth_headers(self) -> Dict[str, str]:
        if self._auth is None:
            return {}
        return {"Authorization": f"Bearer {self._auth[1]}"}

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def _ensure_initialized(self) -> None:
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def _initialize(self) -> None:
        try:
            file_config = load_config_file(self._config_file)
            config = resolve_config(self._options, file_config)

            if self._auth is None:
                if config.deploy_token:
                    self._auth = ("token", config.deploy_token)
                elif config.api_key:
                    self._auth = ("api_key", config.api_key)

            if (config.api_url, config.timeout_seconds) != (
                self.config.api_url,
                self.config.timeout_seconds,
            ):
                logger.debug(f"Switching transport to {config.api_url}")
                replacement = self._create_transport(config)
                self.transport.transfer_to(replacement)
                await self.transport.aclose()
                self.transport = replacement
            self.config = config

            await self._platform.get(self.transport.get_platform_config)
        except BaseException:
            self._init_task = None
            raise

    async def _get_limits(self) -> ConfigLimits:
        await self._ensure_initialized()
        return self._platform.current()

    async def get_config(self) -> ConfigLimits:
        """Platform upload limits (fetched once per process)."""
        return await self._get_limits()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self.transport.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self.transport.off(event, listener)

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    async def deploy(
        self, source: DeployInput, options: Optional[DeployOptions] = None, **kwargs: Any
    ) -> Dict[str, Any]:
        """
        Deploy files or directories.

        Args:
            source: Paths, or ready StaticFile records
            options: DeployOptions; alternatively pass its fields as keywords

        Raises:
            AuthenticationError: If no credential is configured
            ValidationError, CancelledError, ApiError, NetworkError, ...
        """
        if options is None:
            options = DeployOptions(**kwargs)
        elif kwargs:
            raise BusinessError("Pass either a DeployOptions instance or keyword options, not both")

        await self._ensure_initialized()
        if not self.has_auth():
            raise AuthenticationError(
                "Authentication credentials are required for deployment. "
                "Call set_deploy_token() or set_api_key() first.",
                status=401,
            )

        orchestrator = DeployOrchestrator(self.transport, self._get_limits)
        return await orchestrator.deploy(source, options)

    async def list_deployments(self) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.list_deployments()

    async def get_deployment(self, deployment_id: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_deployment(deployment_id)

    async def update_deployment_labels(self, deployment_id: str, labels: List[str]) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.update_deployment_labels(deployment_id, labels)

    async def remove_deployment(self, deployment_id: str) -> None:
        await self._ensure_initialized()
        await self.transport.remove_deployment(deployment_id)

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    async def set_domain(
        self, name: str, deployment: Optional[str] = None, labels: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.set_domain(name, deployment, labels)

    async def get_domain(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_domain(name)

    async def list_domains(self) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.list_domains()

    async def update_domain_labels(self, name: str, labels: List[str]) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.update_domain_labels(name, labels)

    async def remove_domain(self, name: str) -> None:
        await self._ensure_initialized()
        await self.transport.remove_domain(name)

    async def verify_domain(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.verify_domain(name)

    async def get_domain_dns(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_domain_dns(name)

    async def get_domain_records(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_domain_records(name)

    async def get_domain_share(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_domain_share(name)

    async def validate_domain(self, name: str) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.validate_domain(name)

    # ------------------------------------------------------------------
    # Tokens, account, health
    # ------------------------------------------------------------------

    async def create_token(
        self, ttl: Optional[int] = None, labels: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.create_token(ttl, labels)

    async def list_tokens(self) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.list_tokens()

    async def remove_token(self, token: str) -> None:
        await self._ensure_initialized()
        await self.transport.remove_token(token)

    async def get_account(self) -> Dict[str, Any]:
        await self._ensure_initialized()
        return await self.transport.get_account()

    async def whoami(self) -> Dict[str, Any]:
        return await self.get_account()

    async def ping(self) -> bool:
        await self._ensure_initialized()
        return await self.transport.ping()
