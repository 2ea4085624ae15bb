"""
Unit tests for local file collection.

Uses temporary directories to verify directory walking, junk filtering,
upload key computation and checksum calculation.
"""

import hashlib
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from staticship.collector import calculate_md5, collect_files
from staticship.errors import FileError
from staticship.types import FileStatus


def _write(root: Path, relative: str, content: bytes = b"data") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


class TestCalculateMd5:
    """Test checksum calculation."""

    def test_bytes(self):
        """Test in-memory content."""
        assert calculate_md5(b"hello") == hashlib.md5(b"hello").hexdigest()

    def test_file(self):
        """Test on-disk content matches the in-memory digest."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "a.txt", b"hello")
            assert calculate_md5(path) == calculate_md5(b"hello")


class TestCollectFiles:
    """Test collect_files."""

    def test_directory_walk(self):
        """Test a directory is walked recursively with keys relative to it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "dist"
            _write(root, "index.html", b"<html></html>")
            _write(root, "assets/app.js", b"console.log(1)")

            files = collect_files([str(root)])

        assert [f.path for f in files] == ["index.html", "assets/app.js"]
        index = files[0]
        assert index.size == len(b"<html></html>")
        assert index.md5 == hashlib.md5(b"<html></html>").hexdigest()
        assert isinstance(index.content, Path)
        assert index.status == FileStatus.PENDING

    def test_junk_skipped(self):
        """Test OS clutter and dotfiles are not collected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "site"
            _write(root, "index.html")
            _write(root, ".DS_Store")
            _write(root, ".git/HEAD")
            _write(root, "__MACOSX/index.html")

            files = collect_files([root])

        assert [f.path for f in files] == ["index.html"]

    def test_dot_directory_above_input_allowed(self):
        """Test a hidden directory above the input does not hide its files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / ".cache" / "build"
            _write(root, "index.html")

            files = collect_files([root])

        assert [f.path for f in files] == ["index.html"]

    def test_multiple_directories(self):
        """Test keys are relative to the common parent of the inputs."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            _write(base, "site/public/index.html")
            _write(base, "site/static/logo.png")

            files = collect_files([base / "site/public", base / "site/static"])

        assert sorted(f.path for f in files) == ["public/index.html", "static/logo.png"]

    def test_single_file(self):
        """Test a single file is keyed by its name."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "deep/nested/page.html")

            files = collect_files([path])

        assert [f.path for f in files] == ["page.html"]

    def test_empty_file_kept(self):
        """Test empty files are collected so validation can warn about them."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "empty.txt", b"")
            _write(root, "full.txt", b"x")

            files = collect_files([root])

        sizes = {f.path: f.size for f in files}
        assert sizes == {"empty.txt": 0, "full.txt": 1}

    def test_missing_path(self):
        """Test a missing input raises FileError."""
        with pytest.raises(FileError, match="does not exist"):
            collect_files(["/definitely/not/here"])

    def test_no_paths(self):
        """Test empty input yields no files."""
        assert collect_files([]) == []

    def test_unreadable_file_marked(self):
        """Test an unreadable file is returned with PROCESSING_ERROR."""
        real_md5 = calculate_md5

        def fake_md5(source):
            if Path(source).name == "locked.html":
                raise PermissionError("denied")
            return real_md5(source)

        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "ok.html")
            _write(root, "locked.html")
            with patch("staticship.collector.collector.calculate_md5", side_effect=fake_md5):
                files = collect_files([root])

        by_path = {f.path: f for f in files}
        assert by_path["locked.html"].status == FileStatus.PROCESSING_ERROR
        assert "PermissionError" in by_path["locked.html"].status_message
        assert by_path["ok.html"].status == FileStatus.PENDING
