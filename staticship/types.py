"""
Data model shared by the validator, path optimizer, deployer and transport.

Example usage:
    >>> from staticship.types import StaticFile, ConfigLimits
    >>> f = StaticFile(path="index.html", content=b"<html>", size=6, md5="...")
    >>> limits = ConfigLimits(max_file_size=10_000_000, max_files_count=1000,
    ...                       max_total_size=100_000_000)
"""

import asyncio
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, Callable, Dict, List, Optional, Union

# Anything that can be read fully into memory exactly once
ByteSource = Union[bytes, bytearray, memoryview, IO[bytes], "os.PathLike[str]"]


class FileStatus(str, Enum):
    """
    Per-file validation outcome.

    States:
        PENDING: Not yet validated
        READY: Passed every rule, will be uploaded
        EXCLUDED: Dropped with a warning (empty file), does not block the batch
        VALIDATION_FAILED: Rejected (or rejected with the rest of the batch)
        PROCESSING_ERROR: Set upstream when a file could not be read
    """

    PENDING = "pending"
    READY = "ready"
    EXCLUDED = "excluded"
    VALIDATION_FAILED = "validation_failed"
    PROCESSING_ERROR = "processing_error"


@dataclass
class StaticFile:
    """
    One file of a deployment.

    Attributes:
        path: Forward-slash relative path used as the upload key
        content: Read-once byte source (bytes, binary stream or path on disk)
        size: Size in bytes
        md5: Content hash computed by the collector, opaque to the core
        status: Validation status
        status_message: Human-readable reason attached to the status
    """

    path: str
    content: Any = field(repr=False)
    size: int
    md5: str
    status: FileStatus = FileStatus.PENDING
    status_message: Optional[str] = None


@dataclass(frozen=True)
class ConfigLimits:
    """
    Upload limits published by the platform.

    Attributes:
        max_file_size: Largest accepted single file in bytes
        max_files_count: Largest accepted number of files per deployment
        max_total_size: Largest accepted deployment size in bytes
    """

    max_file_size: int
    max_files_count: int
    max_total_size: int

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "ConfigLimits":
        """Build limits from the /config response (camelCase keys)."""
        return cls(
            max_file_size=int(payload["maxFileSize"]),
            max_files_count=int(payload["maxFilesCount"]),
            max_total_size=int(payload["maxTotalSize"]),
        )


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error or warning, attributed to one file."""

    file: str
    message: str
    category: str

    def __str__(self) -> str:
        return f"{self.file}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating a file batch.

    Attributes:
        files: Every input file with its final status
        valid_files: Files with status READY, in input order
        errors: Blocking issues; any error rejects the whole batch
        warnings: Non-blocking issues (excluded empty files)
    """

    files: List[StaticFile]
    valid_files: List[StaticFile]
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]

    @property
    def can_deploy(self) -> bool:
        return not self.errors and bool(self.valid_files)


@dataclass(frozen=True)
class DeployFile:
    """Optimized deploy path and basename for one input path."""

    path: str
    name: str


@dataclass
class DeployOptions:
    """
    Options for a single deploy attempt.

    Attributes:
        labels: Labels attached to the deployment
        path_detect: Strip the common parent directory from upload keys
        spa_detect: Ask the API whether the batch is a single-page application
        signal: Cancellation signal; setting the event aborts the deploy
        timeout_seconds: Request timeout override for the upload
        on_cancel: Called once if the deploy ends cancelled
        on_state_change: Called with each DeployState the attempt enters
    """

    labels: List[str] = field(default_factory=list)
    path_detect: bool = True
    spa_detect: bool = True
    signal: Optional[asyncio.Event] = None
    timeout_seconds: Optional[float] = None
    on_cancel: Optional[Callable[[], None]] = None
    on_state_change: Optional[Callable[[Any], None]] = None
