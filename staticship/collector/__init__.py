"""
Local file collection module.

Turns file and directory paths into StaticFile records with sizes and
checksums, ready for validation.
"""

from .collector import calculate_md5, collect_files

__all__ = ["calculate_md5", "collect_files"]
