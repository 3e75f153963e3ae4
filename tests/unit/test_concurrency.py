"""Unit tests for the scan worker pool."""

from pathlib import Path

from repo_map.concurrency import UNSCANNABLE_FILE, default_max_workers, scan_files


class ExplodingScanner:
    """Scanner whose every call fails with an unexpected error."""

    def scan_file(self, file_path, root_path):
        raise RuntimeError("boom")


class TestScanFiles:
    """Tests for scan_files."""

    def test_outcomes_sorted_by_path(self, sample_project: Path, fake_scanner):
        """Outcomes come back sorted regardless of completion order."""
        paths = ["web/app.js", "pkg/util.py", "pkg/core.py"]

        outcomes = scan_files(fake_scanner, paths, sample_project, max_workers=3)

        assert [o.path for o in outcomes] == ["pkg/core.py", "pkg/util.py", "web/app.js"]
        assert all(o.ok for o in outcomes)
        assert sorted(fake_scanner.scanned) == sorted(paths)

    def test_failures_isolated(self, sample_project: Path, fake_scanner):
        """An engine failure in one file leaves the others intact."""
        (sample_project / "pkg" / "broken.py").write_text("# @@engine-failure@@\n")

        outcomes = {
            o.path: o
            for o in scan_files(
                fake_scanner, ["pkg/broken.py", "pkg/util.py"], sample_project, max_workers=2
            )
        }

        assert not outcomes["pkg/broken.py"].ok
        assert "parse error" in outcomes["pkg/broken.py"].error
        assert outcomes["pkg/util.py"].ok

    def test_unscannable_file(self, sample_project: Path, fake_scanner):
        """A None record becomes an error outcome."""
        outcomes = scan_files(fake_scanner, ["README.md"], sample_project)

        assert outcomes[0].error == UNSCANNABLE_FILE

    def test_unexpected_exception(self, sample_project: Path):
        """Unexpected exceptions are reported per file."""
        outcomes = scan_files(ExplodingScanner(), ["pkg/util.py"], sample_project)

        assert outcomes[0].error == "boom"

    def test_absolute_paths(self, sample_project: Path, fake_scanner):
        """Absolute paths are reported relative to the root."""
        outcomes = scan_files(fake_scanner, [sample_project / "pkg" / "util.py"], sample_project)

        assert outcomes[0].path == "pkg/util.py"

    def test_empty_input(self, sample_project: Path, fake_scanner):
        assert scan_files(fake_scanner, [], sample_project) == []


def test_default_max_workers():
    """The default pool is between one and eight workers."""
    assert 1 <= default_max_workers() <= 8
