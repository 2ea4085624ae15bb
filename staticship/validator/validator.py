"""
Atomic file batch validation.

Decides, before any network call, whether a batch of StaticFiles may be
deployed. Every file is checked and every problem is reported, but the
verdict is all-or-nothing: a single error rejects the entire batch and marks
every file VALIDATION_FAILED. Empty files are the one exception; they are
excluded with a warning and the rest of the batch may still deploy.

Example usage:
    >>> from staticship.validator import validate_files
    >>> result = validate_files(files, limits)
    >>> if not result.can_deploy:
    ...     for issue in result.errors:
    ...         print(issue)
"""

import re
from dataclasses import replace
from typing import List, Optional, Sequence

from staticship.types import (
    ConfigLimits,
    FileStatus,
    StaticFile,
    ValidationIssue,
    ValidationResult,
)
from staticship.utils.logging import get_logger, log_function_call
from staticship.utils.metrics import get_metrics

# Module logger
logger = get_logger(__name__)

# Executables, installers and OS-level scripts are never served
BLOCKED_EXTENSIONS = frozenset(
    [
        "exe", "msi", "msp", "mst", "dll", "sys", "drv", "ocx", "cpl",
        "com", "scr", "pif", "bat", "cmd", "vbs", "vbe", "jse", "wsf",
        "wsh", "ws", "ps1", "psm1", "psd1", "msc", "hta", "inf", "reg",
        "lnk", "scf", "gadget", "application", "appx", "appxbundle",
        "msix", "msixbundle", "apk", "aab", "ipa", "dmg", "pkg", "mpkg",
        "deb", "rpm", "jar",
    ]
)

_URL_UNSAFE = set("?&#%<>[]{}|\\^~`")
_SHELL_UNSAFE = set(";$()'\"*")
_RESERVED_NAME = re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\.|$)", re.IGNORECASE)

EMPTY_FILE_MESSAGE = "File is empty (0 bytes)"
READY_MESSAGE = "Ready for upload"


def format_file_size(size_bytes: int, decimals: int = 1) -> str:
    """
    Format a byte count for humans.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, decimals):g} {units[index]}"


def get_extension(name: str) -> Optional[str]:
    """
    Lower-cased extension of the basename, or None.

    Dotfiles such as ``.htaccess`` count as extensionless; for multi-dot
    names only the last segment is used (``bundle.min.js`` -> ``js``).
    """
    basename = name.rsplit("/", 1)[-1]
    if basename.startswith(".") or "." not in basename:
        return None
    extension = basename.rsplit(".", 1)[-1].lower()
    return extension or None


def is_blocked_extension(name: str) -> bool:
    extension = get_extension(name)
    return extension is not None and extension in BLOCKED_EXTENSIONS


def check_file_name(name: str) -> Optional[str]:
    """
    Check an upload key against the naming rules.

    Returns:
        The rejection reason, or None if the name is acceptable
    """
    if not name or not name.strip():
        return "File name cannot be empty"
    if "\0" in name:
        return "File name contains invalid characters (null byte)"
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in name):
        return "File name contains control characters"
    if any(char in _URL_UNSAFE or char in _SHELL_UNSAFE for char in name):
        return "File name contains unsafe characters"
    if name != name.strip():
        return "File name cannot start or end with whitespace"
    if name.endswith("."):
        return "File name cannot end with a dot"
    if ".." in name.split("/"):
        return "File name contains path traversal pattern"
    if _RESERVED_NAME.match(name.rsplit("/", 1)[-1]):
        return "File name uses a reserved system name"
    return None


def _issue(file: StaticFile, message: str, category: str) -> ValidationIssue:
    return ValidationIssue(file=file.path or "(empty)", message=message, category=category)


@log_function_call
def validate_files(files: Sequence[StaticFile], limits: ConfigLimits) -> ValidationResult:
    """
    Validate a file batch against the platform limits.

    Pure function: no I/O, never raises for rule violations. Checks run per
    file in a fixed order and the first failing rule is reported for that
    file. Any error rejects the whole batch.

    Args:
        files: Files to validate, in upload order
        limits: Platform limits (see PlatformConfigCache)

    Returns:
        ValidationResult; inputs are not modified

    Example:
        >>> result = validate_files([empty_txt, valid_txt], limits)
        >>> result.can_deploy, [f.path for f in result.valid_files]
        (True, ['valid.txt'])
    """
    metrics = get_metrics()

    if not files:
        error = ValidationIssue(file="(none)", message="At least one file is required", category="count")
        logger.warning("Validation failed: no files provided")
        metrics.record_validation_failure("count")
        return ValidationResult(files=[], valid_files=[], errors=[error], warnings=[])

    if len(files) > limits.max_files_count:
        message = (
            f"Number of files ({len(files)}) exceeds limit of {limits.max_files_count}"
        )
        logger.warning(f"Validation failed: {message}")
        metrics.record_validation_failure("count")
        rejected = [
            replace(f, status=FileStatus.VALIDATION_FAILED, status_message=message) for f in files
        ]
        error = ValidationIssue(file="(batch)", message=message, category="count")
        return ValidationResult(files=rejected, valid_files=[], errors=[error], warnings=[])

    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    checked: List[StaticFile] = []
    total_size = 0
    total_exceeded = False

    for file in files:
        status = FileStatus.READY
        message = READY_MESSAGE
        issue: Optional[ValidationIssue] = None
        name_problem = check_file_name(file.path)

        if file.status == FileStatus.PROCESSING_ERROR:
            status = FileStatus.PROCESSING_ERROR
            message = file.status_message or "File failed during processing"
            issue = _issue(file, message, "processing")
        elif name_problem:
            status = FileStatus.VALIDATION_FAILED
            message = name_problem
            issue = _issue(file, message, "name")
        elif file.size < 0:
            status = FileStatus.VALIDATION_FAILED
            message = "File size must not be negative"
            issue = _issue(file, message, "size")
        elif file.size == 0:
            status = FileStatus.EXCLUDED
            message = EMPTY_FILE_MESSAGE
            warnings.append(_issue(file, message, "empty"))
        elif file.size > limits.max_file_size:
            status = FileStatus.VALIDATION_FAILED
            message = (
                f"File size ({format_file_size(file.size)}) exceeds limit of "
                f"{format_file_size(limits.max_file_size)}"
            )
            issue = _issue(file, message, "size")
        elif is_blocked_extension(file.path):
            status = FileStatus.VALIDATION_FAILED
            message = f"File extension '.{get_extension(file.path)}' is not allowed"
            issue = _issue(file, message, "extension")
        else:
            total_size += file.size
            if total_size > limits.max_total_size and not total_exceeded:
                total_exceeded = True
                status = FileStatus.VALIDATION_FAILED
                message = (
                    f"Total size would exceed limit of {format_file_size(limits.max_total_size)}"
                )
                issue = _issue(file, message, "total")

        if issue is not None:
            errors.append(issue)
        checked.append(replace(file, status=status, status_message=message))

    if errors:
        logger.warning(
            f"Validation rejected batch of {len(files)} file(s): {summarize(errors)}"
        )
        for issue in errors:
            metrics.record_validation_failure(issue.category)
        return ValidationResult(
            files=[replace(f, status=FileStatus.VALIDATION_FAILED) for f in checked],
            valid_files=[],
            errors=errors,
            warnings=warnings,
        )

    for warning in warnings:
        logger.warning(f"Excluding {warning}")

    valid_files = [f for f in checked if f.status == FileStatus.READY]
    logger.info(f"Validation passed: {len(valid_files)}/{len(files)} file(s) ready")
    return ValidationResult(files=checked, valid_files=valid_files, errors=[], warnings=warnings)


def summarize(errors: Sequence[ValidationIssue]) -> str:
    """One-line summary of validation errors for error messages."""
    if len(errors) == 1:
        return str(errors[0])
    return f"{len(errors)} file(s) failed validation"
