"""
Deploy path optimization.

Turns local relative paths into clean upload keys: separators are
normalized to forward slashes and, when flattening, the deepest directory
shared by every path is stripped so the deployed site root matches the
project's natural root.

Example usage:
    >>> from staticship.paths import optimize_deploy_paths
    >>> [f.path for f in optimize_deploy_paths(
    ...     ["dist/index.html", "dist/assets/app.js"], flatten=True)]
    ['index.html', 'assets/app.js']
"""

import re
from typing import List, Sequence

from staticship.types import DeployFile
from staticship.utils.logging import get_logger

logger = get_logger(__name__)

_REPEATED_SLASHES = re.compile(r"/+")


def normalize_slashes(path: str) -> str:
    """Convert backslashes to forward slashes, keeping leading slashes."""
    return path.replace("\\", "/")


def normalize_web_path(path: str) -> str:
    """
    Normalize a path for use as an upload key.

    Backslashes become forward slashes, repeated slashes collapse and
    leading slashes are removed.

    Example:
        >>> normalize_web_path("\\\\dist\\\\assets//app.js")
        'dist/assets/app.js'
    """
    return _REPEATED_SLASHES.sub("/", normalize_slashes(path)).lstrip("/")


def extract_file_name(path: str) -> str:
    """Final segment of a path, accepting either separator."""
    return re.split(r"[/\\]", path)[-1] or path


def find_common_directory(paths: Sequence[str]) -> str:
    """
    Deepest directory shared by every file path.

    Comparison is per path segment, never per character, and the last
    segment of each path (the file name) is never part of the result.

    Example:
        >>> find_common_directory(["src/components/A.tsx", "src/utils/B.ts"])
        'src'
        >>> find_common_directory(["file1.txt", "subdir/file3.txt"])
        ''
    """
    if not paths:
        return ""

    split_paths = [normalize_web_path(p).split("/") for p in paths]
    min_length = min(len(segments) for segments in split_paths)
    common: List[str] = []

    for index in range(min_length - 1):
        segment = split_paths[0][index]
        if all(segments[index] == segment for segments in split_paths):
            common.append(segment)
        else:
            break

    return "/".join(common)


def find_common_parent(dir_paths: Sequence[str]) -> str:
    """
    Common parent of a list of directory paths.

    Unlike find_common_directory every segment is a candidate, so a single
    directory is its own common parent. Absolute paths keep their leading
    slash.

    Example:
        >>> find_common_parent(["/home/me/site/dist", "/home/me/site/public"])
        '/home/me/site'
    """
    normalized = [normalize_slashes(p) for p in dir_paths if p]
    if not normalized:
        return ""
    if len(normalized) == 1:
        return normalized[0]

    split_paths = [[s for s in p.split("/") if s] for p in normalized]
    min_length = min(len(segments) for segments in split_paths)
    common: List[str] = []

    for index in range(min_length):
        segment = split_paths[0][index]
        if all(segments[index] == segment for segments in split_paths):
            common.append(segment)
        else:
            break

    prefix = "/" if all(p.startswith("/") for p in normalized) else ""
    return prefix + "/".join(common)


def optimize_deploy_paths(paths: Sequence[str], flatten: bool = True) -> List[DeployFile]:
    """
    Compute upload keys for a list of relative file paths.

    Args:
        paths: Relative file paths, forward- or backslash-separated
        flatten: Strip the common parent directory shared by all paths

    Returns:
        One DeployFile per input path, in input order

    Example:
        >>> optimize_deploy_paths(["index.html", "assets/app.js"], flatten=True)
        [DeployFile(path='index.html', name='index.html'),
         DeployFile(path='assets/app.js', name='app.js')]
    """
    if not flatten:
        return [
            DeployFile(path=normalize_web_path(p), name=extract_file_name(p)) for p in paths
        ]

    common = find_common_directory(paths)
    if common:
        logger.debug(f"Stripping common directory '{common}/' from {len(paths)} path(s)")

    prefix = f"{common}/" if common else ""
    results: List[DeployFile] = []
    for path in paths:
        deploy_path = normalize_web_path(path)
        if prefix and deploy_path.startswith(prefix):
            deploy_path = deploy_path[len(prefix):]
        if not deploy_path:
            deploy_path = extract_file_name(path)
        results.append(DeployFile(path=deploy_path, name=extract_file_name(path)))

    return results
