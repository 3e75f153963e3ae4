"""Configuration package.

Configuration Precedence (highest to lowest):
1. Explicit overrides
2. Environment variables
3. Project config (.repo-map.json)
4. Defaults
"""

from .config_loader import PROJECT_CONFIG_FILENAME, ConfigLoader, load_config
from .models import DEFAULT_STATE_DIR, RepoMapConfig
from .state_dir import StateDirResolver, project_key

__all__ = [
    "ConfigLoader",
    "DEFAULT_STATE_DIR",
    "PROJECT_CONFIG_FILENAME",
    "RepoMapConfig",
    "StateDirResolver",
    "load_config",
    "project_key",
]
