"""Unit tests for repo map persistence."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from repo_map import cache as cache_module
from repo_map.cache import MAP_FILENAME, STALE_FILENAME, RepoMapCache
from repo_map.config import RepoMapConfig, StateDirResolver
from repo_map.models import (
    FileRecord,
    GitInfo,
    ImportEdge,
    ImportKind,
    ProjectInfo,
    RepoMap,
    SymbolEntry,
    SymbolKind,
)


@pytest.fixture()
def repo_map() -> RepoMap:
    repo_map = RepoMap(
        git=GitInfo(commit="d" * 40, branch="main"),
        project=ProjectInfo(type="python", languages=["python"]),
    )
    record = FileRecord(hash="0" * 16, language="python", size=12)
    record.symbols.functions = [SymbolEntry("run", SymbolKind.FUNCTION, 1, exported=True)]
    record.imports = [ImportEdge("os", ImportKind.IMPORT, 1)]
    repo_map.set_file("app.py", record)
    repo_map.recalculate_stats()
    return repo_map


@pytest.fixture()
def cache(tmp_path: Path) -> RepoMapCache:
    return RepoMapCache(tmp_path, StateDirResolver(RepoMapConfig()))


class TestRepoMapCache:
    """Tests for RepoMapCache."""

    def test_paths(self, cache, tmp_path: Path):
        """Files live in the state directory under the project."""
        assert cache.map_path == tmp_path.resolve() / ".claude" / MAP_FILENAME
        assert cache.stale_path == tmp_path.resolve() / ".claude" / STALE_FILENAME

    def test_missing_map(self, cache):
        """Nothing stored yet."""
        assert not cache.exists()
        assert cache.load() is None
        assert cache.get_status() is None

    def test_save_and_load(self, cache, repo_map):
        """A saved map loads back equal and with ``updated`` stamped."""
        path = cache.save(repo_map)

        assert path == cache.map_path
        assert repo_map.updated is not None
        loaded = cache.load()
        assert loaded.to_dict() == repo_map.to_dict()

    def test_saved_as_indented_json(self, cache, repo_map):
        """The file is human-readable JSON with camelCase stats."""
        cache.save(repo_map)

        text = cache.map_path.read_text()
        data = json.loads(text)
        assert text.startswith("{\n  ")
        assert data["stats"]["totalFiles"] == 1
        assert data["dependencies"] == {"app.py": ["os"]}

    def test_save_overwrites(self, cache, repo_map):
        cache.save(repo_map)
        repo_map.remove_file("app.py")
        cache.save(repo_map)

        assert cache.load().files == {}

    def test_failed_save_keeps_previous_map(self, cache, repo_map):
        """A failed write leaves the old file and no temp files behind."""
        cache.save(repo_map)
        before = cache.map_path.read_text()

        with patch("json.dump", side_effect=TypeError("not serializable")):
            with pytest.raises(TypeError):
                cache.save(repo_map)

        assert cache.map_path.read_text() == before
        assert list(cache.state_dir.glob(".repo-map.*.tmp")) == []

    @pytest.mark.parametrize("content", ["{not json", "[]", '{"version": "1.0.0"}'])
    def test_invalid_file(self, cache, content):
        """Unreadable or malformed files load as None."""
        cache.state_dir.mkdir(parents=True)
        cache.map_path.write_text(content)

        assert cache.exists()
        assert cache.load() is None

    def test_unknown_kind_rejected(self, cache, repo_map):
        """Records with unknown kinds make the map invalid."""
        data = repo_map.to_dict()
        data["files"]["app.py"]["imports"][0]["kind"] = "teleport"
        cache.state_dir.mkdir(parents=True)
        cache.map_path.write_text(json.dumps(data))

        assert cache.load() is None


class TestStaleMarker:
    """Tests for the stale marker lifecycle."""

    def test_mark_and_clear(self, cache):
        """The marker is set and removed explicitly."""
        assert not cache.is_marked_stale()

        cache.mark_stale()
        assert cache.is_marked_stale()
        assert cache.stale_path.read_text()

        assert cache.clear_stale() is True
        assert not cache.is_marked_stale()
        assert cache.clear_stale() is False

    def test_marker_without_map(self, cache):
        """The marker does not need a map."""
        cache.mark_stale()

        assert cache.is_marked_stale()
        assert not cache.exists()

    def test_save_clears_marker(self, cache, repo_map):
        """A successful save clears the marker."""
        cache.mark_stale()

        cache.save(repo_map)

        assert not cache.is_marked_stale()

    def test_status_reports_marker(self, cache, repo_map):
        cache.save(repo_map)
        cache.mark_stale()

        status = cache.get_status()

        assert status["markedStale"] is True
        assert status["files"] == 1
        assert status["symbols"] == 1
        assert status["commit"] == "d" * 40
        assert status["languages"] == ["python"]


def test_module_functions(tmp_path: Path, repo_map):
    """Module-level helpers use the default state directory."""
    assert not cache_module.exists(tmp_path)

    cache_module.save(tmp_path, repo_map)
    cache_module.mark_stale(tmp_path)

    assert cache_module.exists(tmp_path)
    assert cache_module.is_marked_stale(tmp_path)
    assert cache_module.load(tmp_path).files.keys() == {"app.py"}
    assert cache_module.get_status(tmp_path)["markedStale"] is True
    assert cache_module.clear_stale(tmp_path)
    assert (tmp_path / ".claude" / MAP_FILENAME).is_file()


def test_shared_absolute_state_dir_keeps_projects_apart(tmp_path: Path, monkeypatch, repo_map):
    """Projects sharing an absolute AI_STATE_DIR keep separate maps and markers."""
    monkeypatch.setenv("AI_STATE_DIR", str(tmp_path / "state"))
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    second.mkdir()

    RepoMapCache(first).save(repo_map)
    RepoMapCache(second).mark_stale()

    assert RepoMapCache(first).map_path != RepoMapCache(second).map_path
    assert not RepoMapCache(second).exists()
    assert not RepoMapCache(first).is_marked_stale()
    assert RepoMapCache(first).load().files.keys() == {"app.py"}
