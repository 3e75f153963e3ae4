"""Repo map: a persistent, incrementally updated symbol and import index."""

__version__ = "1.0.0"

from .batch import full_scan
from .cache import RepoMapCache
from .errors import EngineError, EngineTimeoutError, RepoMapError, ToolNotFoundError
from .models import FileRecord, RepoMap, StalenessResult, UpdateResult
from .scanner import AstGrepScanner, FileScanner
from .staleness import check_staleness
from .updater import incremental_update, update_without_git

__all__ = [
    "__version__",
    "AstGrepScanner",
    "EngineError",
    "EngineTimeoutError",
    "FileRecord",
    "FileScanner",
    "RepoMap",
    "RepoMapCache",
    "RepoMapError",
    "StalenessResult",
    "ToolNotFoundError",
    "UpdateResult",
    "check_staleness",
    "full_scan",
    "incremental_update",
    "update_without_git",
]
