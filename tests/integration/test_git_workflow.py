"""Integration tests for git-based staleness and incremental updates.

These tests run real git commands in temporary repositories and scan with
the regex FakeScanner, so they need git but not ast-grep:
    pytest tests/integration/test_git_workflow.py -v
"""

from pathlib import Path

import pytest

from repo_map import service
from repo_map.batch import full_scan
from repo_map.git import GitChangeDetector
from repo_map.models import GitInfo, RepoMap
from repo_map.staleness import check_staleness
from repo_map.updater import incremental_update

pytestmark = pytest.mark.integration


class TestGitChangeDetectorIntegration:
    """GitChangeDetector against a real repository."""

    def test_head_info(self, git_project: Path, git_cmd):
        """HEAD commit and branch are read from the repository."""
        git = GitChangeDetector(git_project)

        info = git.get_git_info()

        assert git.is_git_repo()
        assert info.commit == git_cmd(git_project, "rev-parse", "HEAD")
        assert info.branch == "main"

    def test_diff_reports_each_kind(self, git_project: Path, commit, git_cmd):
        """Additions, modifications, deletions and renames are classified."""
        base = git_cmd(git_project, "rev-parse", "HEAD")
        (git_project / "pkg" / "util.py").write_text("def helper():\n    return 2\n")
        (git_project / "pkg" / "__init__.py").unlink()
        git_cmd(git_project, "mv", "web/app.js", "web/main.js")
        (git_project / "pkg" / "new.py").write_text("def fresh():\n    pass\n")
        commit(git_project, "second")

        changes = GitChangeDetector(git_project).diff_since(base)

        assert changes.added == ["pkg/new.py"]
        assert changes.modified == ["pkg/util.py"]
        assert changes.deleted == ["pkg/__init__.py"]
        assert changes.renamed == [("web/app.js", "web/main.js")]

    def test_unknown_base(self, git_project: Path):
        """Diffing from an unknown commit yields None."""
        assert GitChangeDetector(git_project).diff_since("f" * 40) is None


class TestStalenessIntegration:
    """check_staleness against a real repository."""

    def test_unknown_commit(self, git_project: Path):
        """A base commit that does not resolve needs a full rebuild."""
        repo_map = RepoMap(git=GitInfo(commit="nonexistent-sha", branch="main"))

        result = check_staleness(git_project, repo_map)

        assert result.is_stale
        assert result.reason == "Base commit no longer exists (rebased?)"
        assert result.suggest_full_rebuild

    def test_commits_behind(self, git_project: Path, commit, git_cmd):
        """Distance to HEAD is counted without marking the map stale."""
        head = git_cmd(git_project, "rev-parse", "HEAD")
        repo_map = RepoMap(git=GitInfo(commit=head, branch="main"))

        assert check_staleness(git_project, repo_map).commits_behind == 0

        commit(git_project, "one")
        commit(git_project, "two")
        result = check_staleness(git_project, repo_map)

        assert result.commits_behind == 2
        assert not result.is_stale

    def test_branch_switch(self, git_project: Path, git_cmd):
        """Checking out another branch makes the map stale."""
        head = git_cmd(git_project, "rev-parse", "HEAD")
        repo_map = RepoMap(git=GitInfo(commit=head, branch="main"))
        git_cmd(git_project, "checkout", "-q", "-b", "feature")

        result = check_staleness(git_project, repo_map)

        assert result.is_stale
        assert result.suggest_full_rebuild
        assert "feature" in result.reason


class TestIncrementalWorkflow:
    """Full scan followed by incremental updates over real commits."""

    @pytest.fixture
    def indexed(self, git_project: Path, fake_scanner, test_config) -> RepoMap:
        repo_map = full_scan(
            git_project, ["python", "javascript"], scanner=fake_scanner, config=test_config
        )
        fake_scanner.scanned.clear()
        return repo_map

    def test_full_scan_records_head(self, git_project: Path, indexed: RepoMap, git_cmd):
        assert indexed.git.commit == git_cmd(git_project, "rev-parse", "HEAD")
        assert indexed.git.branch == "main"

    def test_update_after_commits(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config, commit
    ):
        """Committed changes reach the map; only touched files are rescanned."""
        (git_project / "pkg" / "util.py").write_text(
            "import json\n\ndef helper():\n    return 2\n"
        )
        (git_project / "pkg" / "core.py").unlink()
        (git_project / "web" / "app.js").rename(git_project / "web" / "main.js")
        (git_project / "pkg" / "new.py").write_text("class Fresh:\n    pass\n")
        (git_project / "notes.txt").write_text("not indexed\n")
        head = commit(git_project, "second")

        result = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        )

        assert result.success
        assert sorted(result.map.files) == [
            "pkg/__init__.py",
            "pkg/new.py",
            "pkg/util.py",
            "web/main.js",
        ]
        assert result.map.dependencies == {
            "pkg/util.py": ["json"],
            "web/main.js": ["lodash"],
        }
        assert sorted(fake_scanner.scanned) == ["pkg/new.py", "pkg/util.py", "web/main.js"]
        assert result.changes.deleted == 1
        assert result.changes.renamed == 1
        assert result.map.git.commit == head

    def test_matches_full_rescan(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config, commit
    ):
        """An incremental update and a fresh full scan agree."""
        (git_project / "pkg" / "util.py").write_text("def helper():\n    return 3\n")
        (git_project / "pkg" / "extra.py").write_text("def more():\n    pass\n")
        commit(git_project, "second")

        updated = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        ).map
        rebuilt = full_scan(
            git_project, ["python", "javascript"], scanner=fake_scanner, config=test_config
        )

        assert updated.files == rebuilt.files
        assert updated.dependencies == rebuilt.dependencies
        assert updated.stats.total_symbols == rebuilt.stats.total_symbols

    def test_uncommitted_changes_ignored(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config
    ):
        """Only committed history is diffed."""
        (git_project / "pkg" / "util.py").write_text("def changed():\n    pass\n")

        result = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        )

        assert result.success
        assert result.changes.total == 0
        assert fake_scanner.scanned == []

    def test_deleting_newly_ignored_file(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config, commit, git_cmd
    ):
        """An indexed file that is ignored and removed in one commit leaves the map."""
        with open(git_project / ".gitignore", "a") as f:
            f.write("pkg/core.py\n")
        git_cmd(git_project, "rm", "-q", "pkg/core.py")
        commit(git_project, "drop core")

        result = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        )

        assert result.success
        assert "pkg/core.py" not in result.map.files
        assert "pkg/core.py" not in result.map.dependencies
        assert result.changes.deleted == 1
        assert result.map.stats.total_files == 3

    def test_modified_file_now_ignored(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config, commit
    ):
        """An indexed file that becomes ignored is dropped instead of rescanned."""
        with open(git_project / ".gitignore", "a") as f:
            f.write("pkg/util.py\n")
        (git_project / "pkg" / "util.py").write_text("def helper():\n    return 5\n")
        commit(git_project, "ignore util")

        result = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        )

        assert result.success
        assert "pkg/util.py" not in result.map.files
        assert fake_scanner.scanned == []

    def test_ignored_paths_skipped(
        self, git_project: Path, indexed: RepoMap, fake_scanner, test_config, commit, git_cmd
    ):
        """Force-added dependency files stay out of the map."""
        (git_project / "node_modules" / "dep" / "index.js").write_text("function dep2() {}\n")
        git_cmd(git_project, "add", "-f", "node_modules/dep/index.js")
        commit(git_project, "vendor")

        result = incremental_update(
            git_project, indexed, scanner=fake_scanner, config=test_config
        )

        assert result.success
        assert result.changes.total == 0
        assert "node_modules/dep/index.js" not in result.map.files


class TestServiceWorkflow:
    """init, update and status through the service layer."""

    def test_init_update_status(
        self, git_project: Path, fake_scanner, test_config, commit
    ):
        init = service.init(git_project, scanner=fake_scanner, config=test_config)
        assert init.success

        (git_project / "pkg" / "util.py").write_text("def helper():\n    return 4\n")
        head = commit(git_project, "second")
        service.mark_stale(git_project, test_config)

        updated = service.update(git_project, scanner=fake_scanner, config=test_config)
        report = service.status(git_project, test_config)

        assert updated.success
        assert updated.changes.updated == 1
        assert report["status"]["commit"] == head
        assert report["status"]["markedStale"] is False
        assert report["status"]["staleness"]["commitsBehind"] == 0

    def test_branch_switch_rebuilds(
        self, git_project: Path, fake_scanner, test_config, git_cmd
    ):
        service.init(git_project, scanner=fake_scanner, config=test_config)
        git_cmd(git_project, "checkout", "-q", "-b", "feature")
        fake_scanner.scanned.clear()

        result = service.update(git_project, scanner=fake_scanner, config=test_config)

        assert result.success
        assert len(fake_scanner.scanned) == 4
        assert service.load(git_project, test_config).git.branch == "feature"
