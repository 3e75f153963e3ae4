"""On-disk persistence of the repo map and its stale marker.

Layout under the project's state directory:

    repo-map.json    the map (JSON, indent 2), replaced atomically on save
    repo-map.stale   marker file holding the time it was set

The marker is independent of the map: any collaborator (a git hook, an
editor integration) may set it, and the next successful save clears it.
Concurrent writers are not coordinated; the last rename wins.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .config import StateDirResolver
from .indexer_logging import get_logger
from .models import RepoMap, utc_now_iso

MAP_FILENAME = "repo-map.json"
STALE_FILENAME = "repo-map.stale"


class RepoMapCache:
    """Load and save the repo map of one project.

    Example:
        cache = RepoMapCache(project_path)
        repo_map = cache.load()
        cache.save(repo_map)
    """

    def __init__(self, root_path: Path | str, resolver: StateDirResolver | None = None):
        """Initialize the cache.

        Args:
            root_path: Project root directory
            resolver: State directory resolver (configured one by default)
        """
        self.root_path = Path(root_path).resolve()
        self.resolver = resolver or StateDirResolver()
        self.logger = get_logger()

    @property
    def state_dir(self) -> Path:
        return self.resolver.resolve(self.root_path)

    @property
    def map_path(self) -> Path:
        return self.state_dir / MAP_FILENAME

    @property
    def stale_path(self) -> Path:
        return self.state_dir / STALE_FILENAME

    def exists(self) -> bool:
        """Check if a map file exists."""
        return self.map_path.is_file()

    def load(self) -> RepoMap | None:
        """Load the map.

        Returns:
            The map, or None when missing or unreadable
        """
        path = self.map_path
        if not path.is_file():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return RepoMap.from_dict(data)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Failed to read repo map {path}: {e}")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self.logger.warning(f"Invalid repo map {path}: {e}")
        return None

    def save(self, repo_map: RepoMap) -> Path:
        """Write the map atomically and clear the stale marker.

        Stamps ``repo_map.updated`` with the current time.

        Returns:
            Path of the written map file
        """
        state_dir = self.resolver.ensure(self.root_path)
        path = state_dir / MAP_FILENAME
        repo_map.updated = utc_now_iso()

        # Atomic write: write to temp file, then rename
        fd, temp_path = tempfile.mkstemp(dir=state_dir, prefix=".repo-map.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(repo_map.to_dict(), f, indent=2)
            os.replace(temp_path, path)
        except Exception:
            # Clean up temp file on failure
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        self.logger.debug(f"Saved repo map ({len(repo_map.files)} files) to {path}")
        self.clear_stale()
        return path

    def mark_stale(self) -> Path:
        """Set the stale marker."""
        state_dir = self.resolver.ensure(self.root_path)
        path = state_dir / STALE_FILENAME
        path.write_text(utc_now_iso(), encoding="utf-8")
        self.logger.debug(f"Marked repo map stale: {path}")
        return path

    def clear_stale(self) -> bool:
        """Remove the stale marker. Returns True if one was removed."""
        try:
            self.stale_path.unlink()
        except FileNotFoundError:
            return False
        self.logger.debug("Cleared stale marker")
        return True

    def is_marked_stale(self) -> bool:
        """Check if the stale marker is set."""
        return self.stale_path.exists()

    def get_status(self) -> dict[str, Any] | None:
        """Summary of the stored map, or None when there is none."""
        repo_map = self.load()
        if repo_map is None:
            return None

        return {
            "generated": repo_map.generated,
            "updated": repo_map.updated,
            "commit": repo_map.git.commit if repo_map.git else None,
            "branch": repo_map.git.branch if repo_map.git else None,
            "files": len(repo_map.files),
            "symbols": repo_map.stats.total_symbols,
            "languages": list(repo_map.project.languages),
            "markedStale": self.is_marked_stale(),
        }


def save(root_path: Path | str, repo_map: RepoMap) -> Path:
    return RepoMapCache(root_path).save(repo_map)


def load(root_path: Path | str) -> RepoMap | None:
    return RepoMapCache(root_path).load()


def exists(root_path: Path | str) -> bool:
    return RepoMapCache(root_path).exists()


def mark_stale(root_path: Path | str) -> Path:
    return RepoMapCache(root_path).mark_stale()


def clear_stale(root_path: Path | str) -> bool:
    return RepoMapCache(root_path).clear_stale()


def is_marked_stale(root_path: Path | str) -> bool:
    return RepoMapCache(root_path).is_marked_stale()


def get_status(root_path: Path | str) -> dict[str, Any] | None:
    return RepoMapCache(root_path).get_status()
