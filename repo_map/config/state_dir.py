"""Resolution of the project-scoped state directory."""

import hashlib
from pathlib import Path

from .config_loader import load_config
from .models import RepoMapConfig


def project_key(project_path: Path | str) -> str:
    """Directory name unique to a project root: ``<name>-<hash of path>``."""
    root = Path(project_path).resolve()
    digest = hashlib.sha256(root.as_posix().encode()).hexdigest()[:12]
    return f"{root.name or 'root'}-{digest}"


class StateDirResolver:
    """Maps a project root to its state directory.

    The directory name comes from ``RepoMapConfig.state_dir`` (``AI_STATE_DIR``
    in the environment). Relative names live under the project root. An
    absolute path is shared between projects, so each project gets its own
    subdirectory there, keyed by ``project_key``.
    """

    def __init__(self, config: RepoMapConfig | None = None):
        self._config = config

    def config_for(self, project_path: Path | str) -> RepoMapConfig:
        if self._config is not None:
            return self._config
        return load_config(project_path)

    def resolve(self, project_path: Path | str) -> Path:
        """Return the state directory for ``project_path`` (not created)."""
        state_dir = Path(self.config_for(project_path).state_dir).expanduser()
        if state_dir.is_absolute():
            return state_dir / project_key(project_path)
        return Path(project_path).resolve() / state_dir

    def ensure(self, project_path: Path | str) -> Path:
        """Return the state directory, creating it if needed."""
        path = self.resolve(project_path)
        path.mkdir(parents=True, exist_ok=True)
        return path
