"""Configuration loading with project support."""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..indexer_logging import get_logger
from .models import RepoMapConfig

logger = get_logger()

PROJECT_CONFIG_FILENAME = ".repo-map.json"

# Environment variable -> config field
ENV_VARS = {
    "AI_STATE_DIR": "state_dir",
    "REPO_MAP_MAX_WORKERS": "max_workers",
    "REPO_MAP_ENGINE_TIMEOUT": "engine_timeout_seconds",
    "REPO_MAP_GIT_TIMEOUT": "git_timeout_seconds",
    "REPO_MAP_LOG_LEVEL": "log_level",
}


class ConfigLoader:
    """Configuration loader with project-level support."""

    def __init__(self, project_path: Path | str | None = None):
        self.project_path = Path(project_path) if project_path else Path.cwd()

    @property
    def project_config_path(self) -> Path:
        return self.project_path / PROJECT_CONFIG_FILENAME

    def load(self, **overrides: Any) -> RepoMapConfig:
        """Load configuration from all sources.

        Precedence (highest to lowest):
        1. Explicit overrides
        2. Environment variables
        3. Project config (.repo-map.json)
        4. Defaults
        """
        config_dict: dict[str, Any] = {}

        # 1. Project config file
        project_settings = self._load_project_file()
        config_dict.update(project_settings)
        if project_settings:
            logger.debug(
                f"Loaded {len(project_settings)} settings from {self.project_config_path}"
            )

        # 2. Environment variables
        env_count = 0
        for env_name, key in ENV_VARS.items():
            value = os.environ.get(env_name)
            if value is not None and value != "":
                config_dict[key] = value
                env_count += 1
        if env_count > 0:
            logger.debug(f"Applied {env_count} environment variables")

        # 3. Explicit overrides (highest priority)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        config_dict.update(overrides)
        if overrides:
            logger.debug(f"Applied {len(overrides)} explicit overrides")

        try:
            return RepoMapConfig(**config_dict)
        except ValidationError as e:
            logger.warning(f"Configuration validation failed: {e}, using defaults")
            config = RepoMapConfig()
            for key, value in config_dict.items():
                if key not in RepoMapConfig.model_fields:
                    logger.warning(f"Ignoring unknown setting {key}")
                    continue
                try:
                    config = RepoMapConfig(**{**config.model_dump(), key: value})
                except ValidationError:
                    logger.warning(f"Ignoring invalid setting {key}={value!r}")
            return config

    def _load_project_file(self) -> dict[str, Any]:
        """Read the project config file, if any."""
        path = self.project_config_path
        if not path.is_file():
            return {}

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load project config {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Project config {path} must be a JSON object, ignoring")
            return {}
        return data


def load_config(project_path: Path | str | None = None, **overrides: Any) -> RepoMapConfig:
    """Load configuration for a project with precedence rules.

    Args:
        project_path: Project root (defaults to the current directory)
        **overrides: Explicit configuration overrides; None values are ignored

    Returns:
        Validated RepoMapConfig instance
    """
    return ConfigLoader(project_path).load(**overrides)
