"""
Typed error taxonomy for the staticship client.

Every failure surfaced by the library is a ShipError subclass so callers
(and the CLI/formatting layer) can branch on the kind of failure:

    ValidationError      local, pre-network rejection of a file batch
    NetworkError         connectivity failure (DNS, refused, reset)
    ApiError             non-2xx HTTP response (status/code/details)
    AuthenticationError  401 response
    CancelledError       caller abort or request timeout
    BusinessError        misuse or unexpected internal failure
    FileError            local file unreadable or missing
    ConfigError          malformed or missing configuration

Messages never contain credentials or raw internal tracebacks.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from staticship.types import ValidationResult


class ShipError(Exception):
    """Base class for all staticship errors."""

    error_type = "business"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def is_client_error(self) -> bool:
        """True for errors detected locally, before anything reached the API."""
        return self.error_type in ("validation", "business", "file", "config")

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form consumed by the output formatting layer."""
        return {"error": self.error_type, "message": self.message}


class ValidationError(ShipError):
    """A file batch failed validation; no network call was made."""

    error_type = "validation"

    def __init__(self, message: str, result: "ValidationResult") -> None:
        super().__init__(message)
        self.result = result

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["details"] = [
            {"file": issue.file, "message": issue.message, "category": issue.category}
            for issue in self.result.errors
        ]
        return data


class NetworkError(ShipError):
    """The request never produced an HTTP response."""

    error_type = "network"


class ApiError(ShipError):
    """The API answered with a non-2xx status."""

    error_type = "api"

    def __init__(
        self,
        message: str,
        status: int,
        code: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        if self.code is not None:
            data["code"] = self.code
        if self.details is not None:
            data["details"] = self.details
        return data


class AuthenticationError(ApiError):
    """The API rejected the supplied credentials (HTTP 401)."""

    error_type = "authentication"


class CancelledError(ShipError):
    """The operation was aborted by the caller or by its timeout."""

    error_type = "cancelled"


class BusinessError(ShipError):
    """Misuse of the client or an unexpected internal failure."""

    error_type = "business"


class FileError(ShipError):
    """A local file could not be found or read."""

    error_type = "file"

    def __init__(self, message: str, file_path: Optional[str] = None) -> None:
        super().__init__(message)
        self.file_path = file_path


class ConfigError(ShipError):
    """Configuration is missing or malformed."""

    error_type = "config"


def ensure_ship_error(error: BaseException) -> ShipError:
    """
    Wrap any exception as a ShipError.

    ShipErrors pass through unchanged. Anything else becomes a BusinessError
    with a stable message; the original is kept as ``__cause__`` so it is
    available to logs but never shown in the public message.

    Example:
        >>> try:
        ...     await client.deploy(["dist"])
        ... except Exception as exc:
        ...     err = ensure_ship_error(exc)
        ...     print(err.error_type, err.message)
    """
    if isinstance(error, ShipError):
        return error
    wrapped = BusinessError("An unexpected error occurred")
    wrapped.__cause__ = error
    return wrapped
