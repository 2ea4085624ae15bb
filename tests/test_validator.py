"""
Unit tests for file batch validation.

Tests verify:
- All-or-nothing verdict (one error rejects every file)
- Empty files are excluded with a warning without blocking the batch
- Count, size, total-size, name and extension rules
- Inputs are never mutated
"""

import pytest

from staticship.types import ConfigLimits, FileStatus, StaticFile
from staticship.validator import (
    check_file_name,
    format_file_size,
    is_blocked_extension,
    summarize,
    validate_files,
)


class TestFormatFileSize:
    """Test human-readable size formatting."""

    def test_zero(self):
        """Test zero and negative sizes."""
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(-5) == "0 Bytes"

    def test_units(self):
        """Test unit boundaries, including exact powers of 1024."""
        assert format_file_size(512) == "512 Bytes"
        assert format_file_size(1024) == "1 KB"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(1024 * 1024) == "1 MB"
        assert format_file_size(5 * 1024 ** 3) == "5 GB"


class TestFileNames:
    """Test upload key naming rules."""

    @pytest.mark.parametrize(
        "name",
        ["index.html", "assets/app.min.js", "img/logo 2.png", ".well-known/security.txt", "a..b.txt"],
    )
    def test_accepts_valid_names(self, name):
        """Test that ordinary names pass."""
        assert check_file_name(name) is None

    @pytest.mark.parametrize(
        "name,reason",
        [
            ("", "empty"),
            ("   ", "empty"),
            ("bad\0name.txt", "null byte"),
            ("bad\x07name.txt", "control characters"),
            ("query?.html", "unsafe characters"),
            ("price$.html", "unsafe characters"),
            (" padded.txt", "whitespace"),
            ("trailing.", "end with a dot"),
            ("../etc/passwd", "path traversal"),
            ("a/../b.txt", "path traversal"),
            ("docs/CON.txt", "reserved system name"),
            ("lpt1", "reserved system name"),
        ],
    )
    def test_rejects_invalid_names(self, name, reason):
        """Test each naming rule reports its reason."""
        problem = check_file_name(name)
        assert problem is not None
        assert reason in problem

    def test_blocked_extensions(self):
        """Test extension blocking is case-insensitive and ignores dotfiles."""
        assert is_blocked_extension("setup.exe")
        assert is_blocked_extension("tools/Install.MSI")
        assert not is_blocked_extension("script.js")
        assert not is_blocked_extension(".bat")
        assert not is_blocked_extension("README")


class TestValidateFiles:
    """Test validate_files batch verdicts."""

    def test_valid_batch(self, make_file, limits):
        """Test a clean batch is deployable and every file READY."""
        files = [make_file("index.html"), make_file("assets/app.js", b"console.log(1)")]

        result = validate_files(files, limits)

        assert result.can_deploy is True
        assert result.errors == []
        assert [f.path for f in result.valid_files] == ["index.html", "assets/app.js"]
        assert all(f.status == FileStatus.READY for f in result.files)

    def test_empty_batch(self, limits):
        """Test an empty batch is rejected with a count error."""
        result = validate_files([], limits)

        assert result.can_deploy is False
        assert len(result.errors) == 1
        assert result.errors[0].category == "count"
        assert "At least one file is required" in result.errors[0].message

    def test_too_many_files(self, make_file, limits):
        """Test exceeding the count limit rejects every file."""
        files = [make_file(f"page{i}.html", b"x") for i in range(limits.max_files_count + 1)]

        result = validate_files(files, limits)

        assert result.can_deploy is False
        assert result.valid_files == []
        assert result.errors[0].category == "count"
        assert "exceeds limit of 5" in result.errors[0].message
        assert all(f.status == FileStatus.VALIDATION_FAILED for f in result.files)

    def test_one_bad_file_rejects_batch(self, make_file, limits):
        """Test a single oversized file fails the entire batch."""
        files = [make_file("ok.html"), make_file("big.bin", b"x" * 2048), make_file("also-ok.css")]

        result = validate_files(files, limits)

        assert result.can_deploy is False
        assert result.valid_files == []
        assert len(result.errors) == 1
        assert result.errors[0].file == "big.bin"
        assert result.errors[0].category == "size"
        assert all(f.status == FileStatus.VALIDATION_FAILED for f in result.files)

    def test_every_error_is_reported(self, make_file, limits):
        """Test that validation continues past the first error."""
        files = [make_file("run.exe", b"MZ"), make_file("what?.html"), make_file("fine.html")]

        result = validate_files(files, limits)

        assert [(e.file, e.category) for e in result.errors] == [
            ("run.exe", "extension"),
            ("what?.html", "name"),
        ]
        assert "'.exe' is not allowed" in result.errors[0].message

    def test_empty_file_excluded_with_warning(self, make_file, limits):
        """Test empty files are excluded without blocking the batch."""
        files = [make_file("empty.txt", b""), make_file("valid.txt", b"content")]

        result = validate_files(files, limits)

        assert result.can_deploy is True
        assert [f.path for f in result.valid_files] == ["valid.txt"]
        assert len(result.warnings) == 1
        assert result.warnings[0].file == "empty.txt"
        assert result.warnings[0].category == "empty"
        statuses = {f.path: f.status for f in result.files}
        assert statuses == {"empty.txt": FileStatus.EXCLUDED, "valid.txt": FileStatus.READY}

    def test_only_empty_files(self, make_file, limits):
        """Test a batch of only empty files has nothing to deploy."""
        result = validate_files([make_file("a.txt", b""), make_file("b.txt", b"")], limits)

        assert result.errors == []
        assert result.valid_files == []
        assert result.can_deploy is False

    def test_total_size_blames_first_crossing_file(self, make_file, limits):
        """Test the total-size error is attributed to the file that crosses it."""
        chunk = b"x" * 1000
        files = [make_file(f"part{i}.bin", chunk) for i in range(4)]

        result = validate_files(files, limits)

        assert result.can_deploy is False
        assert len(result.errors) == 1
        assert result.errors[0].file == "part3.bin"
        assert result.errors[0].category == "total"

    def test_processing_error_is_reported(self, make_file, limits):
        """Test files that failed upstream processing reject the batch."""
        broken = make_file("broken.html")
        broken.status = FileStatus.PROCESSING_ERROR
        broken.status_message = "File could not be read (PermissionError)"

        result = validate_files([broken, make_file("ok.html")], limits)

        assert result.can_deploy is False
        assert result.errors[0].category == "processing"
        assert "PermissionError" in result.errors[0].message

    def test_inputs_not_mutated(self, make_file, limits):
        """Test the caller's StaticFiles keep their original status."""
        files = [make_file("index.html")]

        validate_files(files, limits)

        assert files[0].status == FileStatus.PENDING
        assert files[0].status_message is None

    def test_size_exactly_at_limit(self, make_file):
        """Test limits are inclusive."""
        limits = ConfigLimits(max_file_size=10, max_files_count=2, max_total_size=20)
        files = [make_file("a.txt", b"x" * 10), make_file("b.txt", b"y" * 10)]

        result = validate_files(files, limits)

        assert result.can_deploy is True

    def test_negative_size_rejected(self, limits):
        """Test a negative size is a size error."""
        file = StaticFile(path="weird.txt", content=b"", size=-1, md5="abc")

        result = validate_files([file], limits)

        assert result.errors[0].category == "size"


class TestSummarize:
    """Test error summaries."""

    def test_single_error_names_file(self, make_file, limits):
        """Test a single error is shown in full."""
        result = validate_files([make_file("x.exe", b"MZ")], limits)

        assert summarize(result.errors) == "x.exe: File extension '.exe' is not allowed"

    def test_multiple_errors_counted(self, make_file, limits):
        """Test several errors are summarized by count."""
        result = validate_files([make_file("x.exe", b"MZ"), make_file("y.bat", b"@")], limits)

        assert summarize(result.errors) == "2 file(s) failed validation"
