"""
Byte-source normalization and multipart deploy body construction.

A ByteSource is read by capability, never by runtime:
    - bytes / bytearray / memoryview ("buffer"): copied as-is
    - any object with a callable ``read`` ("blob"): read once
    - os.PathLike ("file"): the file is read from disk

Each source is read fully into memory exactly once, when the deploy body is
built.
"""

import json
import mimetypes
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from staticship.errors import BusinessError, FileError
from staticship.types import StaticFile

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# httpx multipart entry: (field name, (filename, content, content type))
MultipartFile = Tuple[str, Tuple[str, bytes, str]]


def read_byte_source(source: Any, file_path: Optional[str] = None) -> bytes:
    """
    Read a ByteSource fully into memory.

    Args:
        source: Buffer, readable object or path on disk
        file_path: Upload key, used in error messages

    Raises:
        FileError: If the source is of an unsupported kind or cannot be read
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    read = getattr(source, "read", None)
    if callable(read):
        try:
            data = read()
        except OSError as e:
            raise FileError(
                f"Could not read file {file_path} ({type(e).__name__})",
                file_path=file_path,
            ) from e
        if isinstance(data, str):
            raise FileError(
                f"File content must be binary, got text stream for {file_path}",
                file_path=file_path,
            )
        return bytes(data)

    if isinstance(source, os.PathLike):
        try:
            return Path(source).read_bytes()
        except OSError as e:
            raise FileError(
                f"Could not read file {file_path or os.fspath(source)} ({type(e).__name__})",
                file_path=file_path,
            ) from e

    raise FileError(
        f"Unsupported file content type {type(source).__name__} for {file_path}",
        file_path=file_path,
    )


def is_rereadable(source: Any) -> bool:
    """True when reading ``source`` does not consume it (buffers and paths)."""
    return isinstance(source, (bytes, bytearray, memoryview, os.PathLike))


def guess_content_type(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    return content_type or DEFAULT_CONTENT_TYPE


def build_deploy_body(
    files: Sequence[StaticFile], labels: Optional[Sequence[str]] = None
) -> Tuple[List[MultipartFile], Dict[str, str]]:
    """
    Build the multipart payload for POST /deployments.

    Returns:
        (files, data) ready to pass to httpx: one ``files[]`` part per file,
        plus a ``checksums`` field (JSON array of MD5s, in file order) and a
        ``labels`` field (JSON array) when labels are present

    Raises:
        BusinessError: If ``files`` is empty
        FileError: If a file has no checksum or its content cannot be read
    """
    if not files:
        raise BusinessError("No files to deploy")

    parts: List[MultipartFile] = []
    checksums: List[str] = []
    for static_file in files:
        if not static_file.md5:
            raise FileError(
                f"MD5 checksum missing for file: {static_file.path}",
                file_path=static_file.path,
            )
        content = read_byte_source(static_file.content, static_file.path)
        parts.append(
            ("files[]", (static_file.path, content, guess_content_type(static_file.path)))
        )
        checksums.append(static_file.md5)

    data = {"checksums": json.dumps(checksums)}
    if labels:
        data["labels"] = json.dumps(list(labels))

    return parts, data
