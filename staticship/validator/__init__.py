"""
File batch validation module.

Validates a batch of StaticFiles against the platform limits with
all-or-nothing semantics before anything is sent over the network.
"""

from .validator import (
    BLOCKED_EXTENSIONS,
    check_file_name,
    format_file_size,
    is_blocked_extension,
    summarize,
    validate_files,
)

__all__ = [
    "BLOCKED_EXTENSIONS",
    "check_file_name",
    "format_file_size",
    "is_blocked_extension",
    "summarize",
    "validate_files",
]
