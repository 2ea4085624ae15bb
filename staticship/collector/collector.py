"""
Local file collection.

Resolves file and directory paths into StaticFile records ready for
validation: directories are walked recursively, junk files are dropped,
upload keys are made relative to the common parent of the inputs, and each
file gets its size and MD5 checksum.

File contents are not loaded here. Each StaticFile carries the file's Path
as its byte source; the transport reads it once, at upload time.

A file that cannot be read is not skipped silently. It is returned with
status PROCESSING_ERROR so the validator rejects the batch and reports it.

Example usage:
    >>> from staticship.collector import collect_files
    >>> files = collect_files(["./dist"])
    >>> [f.path for f in files]
    ['index.html', 'assets/app.js']
"""

import hashlib
import os
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from staticship.errors import FileError
from staticship.paths import filter_junk, find_common_parent
from staticship.types import FileStatus, StaticFile
from staticship.utils.logging import get_logger, log_function_call

# Module logger
logger = get_logger(__name__)

# Read size for checksum computation
HASH_CHUNK_SIZE = 2 * 1024 * 1024

PathInput = Union[str, "os.PathLike[str]"]


def calculate_md5(source: Union[bytes, bytearray, memoryview, Path]) -> str:
    """
    Hex MD5 of in-memory bytes or of a file on disk (read in chunks).

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.md5()
    if isinstance(source, (bytes, bytearray, memoryview)):
        digest.update(source)
        return digest.hexdigest()

    with open(source, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _walk(directory: Path) -> Iterable[Path]:
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in sorted(files):
            yield Path(root) / name


def _relative_key(file_path: Path, base: str) -> str:
    if base:
        try:
            return file_path.relative_to(base).as_posix()
        except ValueError:
            pass
    return file_path.name


@log_function_call
def collect_files(paths: Sequence[PathInput]) -> List[StaticFile]:
    """
    Resolve paths into StaticFile records.

    Args:
        paths: Files and/or directories to deploy

    Returns:
        StaticFiles in deterministic (sorted walk) order; upload keys are
        relative to the common parent of the inputs, not yet flattened

    Raises:
        FileError: If an input path does not exist
    """
    if not paths:
        return []

    resolved_inputs: List[Path] = []
    for raw in paths:
        path = Path(raw).resolve()
        if not path.exists():
            raise FileError(f"Path does not exist: {raw}", file_path=str(raw))
        resolved_inputs.append(path)

    discovered: List[Path] = []
    seen = set()
    for path in resolved_inputs:
        candidates = _walk(path) if path.is_dir() else [path]
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                discovered.append(candidate)

    base = find_common_parent(
        [str(p if p.is_dir() else p.parent) for p in resolved_inputs]
    )

    # Junk rules apply to the part of the path that gets uploaded
    keyed = {_relative_key(p, base): p for p in discovered}
    kept = filter_junk(list(keyed))
    skipped = len(keyed) - len(kept)
    if skipped:
        logger.info(f"Skipped {skipped} junk file(s)")
    if not kept:
        logger.warning("No deployable files found in the given paths")
        return []

    files: List[StaticFile] = []
    for key in kept:
        file_path = keyed[key]
        try:
            size = file_path.stat().st_size
            md5 = calculate_md5(file_path)
        except OSError as e:
            logger.error(f"Could not read {file_path}: {e}")
            files.append(
                StaticFile(
                    path=key,
                    content=file_path,
                    size=0,
                    md5="",
                    status=FileStatus.PROCESSING_ERROR,
                    status_message=f"File could not be read ({type(e).__name__})",
                )
            )
            continue
        files.append(StaticFile(path=key, content=file_path, size=size, md5=md5))

    logger.info(f"Collected {len(files)} file(s) from {len(paths)} input path(s)")
    return files
