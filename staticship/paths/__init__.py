"""
Path handling module.

Normalizes local paths into upload keys, strips common parent directories
and filters out junk files.
"""

from .junk import JUNK_DIRECTORIES, filter_junk, is_junk
from .paths import (
    extract_file_name,
    find_common_directory,
    find_common_parent,
    normalize_web_path,
    optimize_deploy_paths,
)

__all__ = [
    "JUNK_DIRECTORIES",
    "extract_file_name",
    "filter_junk",
    "find_common_directory",
    "find_common_parent",
    "is_junk",
    "normalize_web_path",
    "optimize_deploy_paths",
]
