"""
HTTP transport for the Ship API.

Every API call goes through HttpTransport.request(), which:
    - arms a per-request timer and combines it with the caller's
      cancellation signal, so whichever fires first aborts the request
    - emits request / response / error events to registered listeners
    - classifies every failure into a typed ShipError
    - releases the timer and signal forwarder exactly once on every exit path

Uploads are single-attempt: nothing is retried.

Example usage:
    >>> transport = HttpTransport(api_url="https://api.shipstatic.com",
    ...                           get_auth_headers=lambda: {"Authorization": "Bearer ..."})
    >>> await transport.ping()
    True
    >>> await transport.aclose()
"""

import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from staticship.errors import (
    ApiError,
    AuthenticationError,
    BusinessError,
    CancelledError,
    NetworkError,
    ShipError,
)
from staticship.transport.body import build_deploy_body
from staticship.transport.events import EventEmitter
from staticship.types import ConfigLimits, StaticFile
from staticship.utils.config import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from staticship.utils.logging import get_correlation_id, get_logger
from staticship.utils.metrics import ClientMetrics, get_metrics

logger = get_logger(__name__)

ENDPOINTS = {
    "deployments": "/deployments",
    "domains": "/domains",
    "tokens": "/tokens",
    "account": "/account",
    "config": "/config",
    "ping": "/ping",
    "spa_check": "/spa-check",
}

# Longest error body text carried into an ApiError message
MAX_ERROR_TEXT = 500

AuthHeadersProvider = Callable[[], Mapping[str, str]]


class _RequestAborted(Exception):
    """Internal marker: the abort signal won the race against the response."""


class TimeoutSignal:
    """
    Per-request abort signal driven by a timer and an optional caller signal.

    Attributes:
        abort: Event set when the request must be aborted
        timer: Handle of the scheduled timeout
        timed_out: True when the timer (not the caller) fired
    """

    def __init__(self, timeout_seconds: float, signal: Optional[asyncio.Event] = None) -> None:
        loop = asyncio.get_running_loop()
        self.abort = asyncio.Event()
        self.timed_out = False
        self.timer = loop.call_later(timeout_seconds, self._on_timeout)
        self._forwarder: Optional["asyncio.Task[None]"] = None
        self._released = False

        if signal is not None:
            if signal.is_set():
                self.abort.set()
            else:
                self._forwarder = loop.create_task(self._forward(signal))

    def _on_timeout(self) -> None:
        self.timed_out = True
        self.abort.set()

    async def _forward(self, signal: asyncio.Event) -> None:
        await signal.wait()
        self.abort.set()

    def cleanup(self) -> None:
        """Cancel the timer and stop forwarding the caller signal. Idempotent."""
        if self._released:
            return
        self._released = True
        self.timer.cancel()
        if self._forwarder is not None:
            self._forwarder.cancel()


class HttpTransport(EventEmitter):
    """
    Async HTTP client for the Ship API built on httpx.AsyncClient.

    Args:
        api_url: API base URL
        timeout_seconds: Default per-request timeout
        get_auth_headers: Callback evaluated for every request
        client: Pre-built httpx.AsyncClient (tests pass one with a MockTransport);
            the transport closes only clients it created itself
        metrics: Metrics sink (global instance if None)
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        get_auth_headers: Optional[AuthHeadersProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[ClientMetrics] = None,
    ) -> None:
        super().__init__()
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._get_auth_headers = get_auth_headers or dict
        # The per-request TimeoutSignal governs time limits, not httpx
        self._client = client if client is not None else httpx.AsyncClient(timeout=None)
        self._owns_client = client is None
        self.metrics = metrics if metrics is not None else get_metrics()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _create_timeout_signal(
        self, signal: Optional[asyncio.Event], timeout_seconds: Optional[float]
    ) -> TimeoutSignal:
        return TimeoutSignal(
            timeout_seconds if timeout_seconds is not None else self.timeout_seconds, signal
        )

    # ------------------------------------------------------------------
    # Core request lifecycle
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        files: Optional[List[Any]] = None,
        data: Optional[Dict[str, str]] = None,
        signal: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
        operation: str = "Request",
    ) -> Any:
        """
        Send one request and return its parsed JSON body.

        Returns:
            Parsed JSON, or None for 204 / empty responses

        Raises:
            CancelledError: The caller signal or the timeout fired first
            NetworkError: No HTTP response was received
            ApiError: Non-2xx response (AuthenticationError for 401)
            BusinessError: Any other failure
        """
        payload, _ = await self._execute(
            method,
            path,
            json=json,
            files=files,
            data=data,
            signal=signal,
            timeout_seconds=timeout_seconds,
            operation=operation,
        )
        return payload

    async def _execute(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        files: Optional[List[Any]] = None,
        data: Optional[Dict[str, str]] = None,
        signal: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
        operation: str = "Request",
    ) -> Tuple[Any, int]:
        url = f"{self.api_url}{path}"
        timeout_signal = self._create_timeout_signal(signal, timeout_seconds)

        try:
            headers = {"X-Correlation-ID": get_correlation_id()}
            headers.update(self._get_auth_headers())
            request = self._client.build_request(
                method, url, json=json, files=files, data=data, headers=headers
            )
            self.emit("request", url, request)
            logger.debug(f"{method} {url}", extra={"operation": operation})

            with self.metrics.track_request(operation):
                response = await self._send(request, timeout_signal.abort)
            if not response.is_success:
                raise self._response_error(response, operation)
            payload = self._parse_response(response)
        except Exception as exc:
            error = self._classify_error(exc, operation, timeout_signal.timed_out)
            self.metrics.record_request(operation, self._outcome(error))
            self.emit("error", error, url)
            if error is exc:
                raise
            raise error from exc
        finally:
            timeout_signal.cleanup()

        self.metrics.record_request(operation, "success")
        self.emit("response", response, url)
        return payload, response.status_code

    async def _send(self, request: httpx.Request, abort: asyncio.Event) -> httpx.Response:
        if abort.is_set():
            raise _RequestAborted()

        send_task = asyncio.ensure_future(self._client.send(request))
        abort_task = asyncio.ensure_future(abort.wait())
        try:
            done, pending = await asyncio.wait(
                {send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            send_task.cancel()
            abort_task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)

        if send_task in done:
            return send_task.result()
        raise _RequestAborted()

    @staticmethod
    def _parse_response(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _response_error(response: httpx.Response, operation: str) -> ApiError:
        message: Optional[str] = None
        code: Optional[str] = None
        details: Any = None

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body = response.json()
            except ValueError:
                message = "Failed to parse error response"
            else:
                if isinstance(body, dict):
                    if isinstance(body.get("message"), str):
                        message = body["message"]
                    if isinstance(body.get("code"), str):
                        code = body["code"]
                    elif isinstance(body.get("error"), str):
                        code = body["error"]
                    details = body.get("details")
                    if message is None and isinstance(body.get("error"), str):
                        message = body["error"]
        else:
            text = response.text.strip()
            if text:
                message = text[:MAX_ERROR_TEXT]

        message = message or f"{operation} failed"
        if response.status_code == 401:
            return AuthenticationError(message, response.status_code, code, details)
        return ApiError(message, response.status_code, code, details)

    @staticmethod
    def _classify_error(exc: Exception, operation: str, timed_out: bool) -> ShipError:
        if isinstance(exc, ShipError):
            return exc
        if isinstance(exc, _RequestAborted):
            reason = "timed out" if timed_out else "aborted by caller"
            logger.info(f"{operation} {reason}")
            return CancelledError(f"{operation} cancelled")
        if isinstance(exc, httpx.TransportError):
            logger.warning(f"{operation} network failure: {type(exc).__name__}: {exc}")
            return NetworkError(f"{operation} failed: network error ({type(exc).__name__})")
        logger.error(f"{operation} failed unexpectedly: {type(exc).__name__}", exc_info=exc)
        return BusinessError(f"{operation} failed: unexpected error")

    @staticmethod
    def _outcome(error: ShipError) -> str:
        if isinstance(error, CancelledError):
            return "cancelled"
        if isinstance(error, NetworkError):
            return "network_error"
        if isinstance(error, ApiError):
            return "api_error"
        return "error"

    # ------------------------------------------------------------------
    # Verb helpers
    # ------------------------------------------------------------------

    async def get(self, path: str, *, operation: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, operation=operation, **kwargs)

    async def post(self, path: str, *, operation: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, operation=operation, **kwargs)

    async def put(self, path: str, *, operation: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, operation=operation, **kwargs)

    async def patch(self, path: str, *, operation: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, operation=operation, **kwargs)

    async def delete(self, path: str, *, operation: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, operation=operation, **kwargs)

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    async def upload(
        self,
        files: Sequence[StaticFile],
        labels: Optional[Sequence[str]] = None,
        signal: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Upload a deployment in a single multipart request.

        Raises:
            BusinessError: If ``files`` is empty
            FileError: If a file lacks a checksum or cannot be read
            plus any error raised by request()
        """
        parts, data = build_deploy_body(files, labels)
        total_bytes = sum(len(content) for _, (_, content, _) in parts)
        logger.info(f"Uploading {len(parts)} file(s), {total_bytes} bytes")

        result = await self.post(
            ENDPOINTS["deployments"],
            files=parts,
            data=data,
            signal=signal,
            timeout_seconds=timeout_seconds,
            operation="Deploy",
        )
        self.metrics.record_upload(len(parts), total_bytes)
        return result

    async def list_deployments(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["deployments"], operation="List deployments")

    async def get_deployment(self, deployment_id: str) -> Dict[str, Any]:
        return await self.get(_item(ENDPOINTS["deployments"], deployment_id), operation="Get deployment")

    async def update_deployment_labels(self, deployment_id: str, labels: List[str]) -> Dict[str, Any]:
        return await self.patch(
            _item(ENDPOINTS["deployments"], deployment_id),
            json={"labels": labels},
            operation="Update deployment labels",
        )

    async def remove_deployment(self, deployment_id: str) -> None:
        await self.delete(_item(ENDPOINTS["deployments"], deployment_id), operation="Remove deployment")

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    async def set_domain(
        self, name: str, deployment: Optional[str] = None, labels: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Create or update a domain; the result carries ``isCreate`` (HTTP 201)."""
        body: Dict[str, Any] = {}
        if deployment:
            body["deployment"] = deployment
        if labels is not None:
            body["labels"] = labels

        payload, status = await self._execute(
            "PUT", _item(ENDPOINTS["domains"], name), json=body, operation="Set domain"
        )
        result = dict(payload or {})
        result["isCreate"] = status == 201
        return result

    async def list_domains(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["domains"], operation="List domains")

    async def get_domain(self, name: str) -> Dict[str, Any]:
        return await self.get(_item(ENDPOINTS["domains"], name), operation="Get domain")

    async def update_domain_labels(self, name: str, labels: List[str]) -> Dict[str, Any]:
        return await self.patch(
            _item(ENDPOINTS["domains"], name),
            json={"labels": labels},
            operation="Update domain labels",
        )

    async def remove_domain(self, name: str) -> None:
        await self.delete(_item(ENDPOINTS["domains"], name), operation="Remove domain")

    async def verify_domain(self, name: str) -> Dict[str, Any]:
        return await self.post(f"{_item(ENDPOINTS['domains'], name)}/verify", operation="Verify domain")

    async def get_domain_dns(self, name: str) -> Dict[str, Any]:
        return await self.get(f"{_item(ENDPOINTS['domains'], name)}/dns", operation="Get domain DNS")

    async def get_domain_records(self, name: str) -> Dict[str, Any]:
        return await self.get(
            f"{_item(ENDPOINTS['domains'], name)}/records", operation="Get domain records"
        )

    async def get_domain_share(self, name: str) -> Dict[str, Any]:
        return await self.get(f"{_item(ENDPOINTS['domains'], name)}/share", operation="Get domain share")

    async def validate_domain(self, name: str) -> Dict[str, Any]:
        return await self.post(
            f"{ENDPOINTS['domains']}/validate", json={"domain": name}, operation="Validate domain"
        )

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def create_token(
        self, ttl: Optional[int] = None, labels: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if ttl is not None:
            body["ttl"] = ttl
        if labels is not None:
            body["labels"] = labels
        return await self.post(ENDPOINTS["tokens"], json=body, operation="Create token")

    async def list_tokens(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["tokens"], operation="List tokens")

    async def remove_token(self, token: str) -> None:
        await self.delete(_item(ENDPOINTS["tokens"], token), operation="Remove token")

    # ------------------------------------------------------------------
    # Account, config, health
    # ------------------------------------------------------------------

    async def get_account(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["account"], operation="Get account")

    async def get_config(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["config"], operation="Get config")

    async def get_platform_config(self) -> ConfigLimits:
        """
        Fetch upload limits.

        Raises:
            BusinessError: If the response lacks the expected limit fields
        """
        payload = await self.get_config()
        try:
            return ConfigLimits.from_response(payload or {})
        except (KeyError, TypeError, ValueError) as e:
            raise BusinessError("Get config failed: unexpected response") from e

    async def ping(self) -> bool:
        data = await self.get(ENDPOINTS["ping"], operation="Ping")
        return bool(data and data.get("success"))

    async def get_ping_response(self) -> Dict[str, Any]:
        return await self.get(ENDPOINTS["ping"], operation="Ping")

    async def check_spa(
        self, paths: List[str], index: str, signal: Optional[asyncio.Event] = None
    ) -> bool:
        """Ask the API whether the file list and index page form a SPA."""
        data = await self.post(
            ENDPOINTS["spa_check"],
            json={"files": paths, "index": index},
            signal=signal,
            operation="SPA check",
        )
        return bool(data and data.get("isSPA"))


def _item(collection: str, identifier: str) -> str:
    return f"{collection}/{quote(identifier, safe='')}"
