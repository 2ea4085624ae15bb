"""
Junk file filtering.

Drops operating-system clutter and hidden files from a path list before it
is turned into a deployment. The rules are fixed:

- basename is a known junk file (.DS_Store, Thumbs.db, ...)
- any segment starts with a dot (.env, .git, ...)
- any segment is longer than 255 characters
- any directory segment is a known junk directory (case-insensitive)
"""

import re
from typing import List, Sequence

JUNK_DIRECTORIES = ("__MACOSX", ".Trashes", ".fseventsd", ".Spotlight-V100")

MAX_SEGMENT_LENGTH = 255

_JUNK_FILE = re.compile(
    r"^(?:"
    r"\.DS_Store|\.AppleDouble|\.LSOverride|Icon\r|\._.*|\.Spotlight-V100"
    r"|\.Trashes|__MACOSX|.*~|Thumbs\.db|ehthumbs\.db|ehthumbs_vista\.db"
    r"|[Dd]esktop\.ini|\$RECYCLE\.BIN|npm-debug\.log|\.\w+\.swp|\.#.*"
    r")$"
)

_JUNK_DIRECTORIES_LOWER = {d.lower() for d in JUNK_DIRECTORIES}


def is_junk(name: str) -> bool:
    """True if a basename is a known junk file."""
    return bool(_JUNK_FILE.match(name))


def filter_junk(file_paths: Sequence[str]) -> List[str]:
    """
    Remove junk entries from a list of file paths.

    Example:
        >>> filter_junk(["index.html", ".DS_Store", "__MACOSX/a.txt", "app.js"])
        ['index.html', 'app.js']
    """
    kept: List[str] = []
    for file_path in file_paths:
        if not file_path:
            continue

        parts = [p for p in file_path.replace("\\", "/").split("/") if p]
        if not parts:
            kept.append(file_path)
            continue

        if is_junk(parts[-1]):
            continue
        if any(p.startswith(".") or len(p) > MAX_SEGMENT_LENGTH for p in parts):
            continue
        if any(p.lower() in _JUNK_DIRECTORIES_LOWER for p in parts[:-1]):
            continue

        kept.append(file_path)

    return kept
