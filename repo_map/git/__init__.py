"""Git integration for incremental updates and staleness checks."""

from .change_detector import ChangeSet, GitChangeDetector

__all__ = ["GitChangeDetector", "ChangeSet"]
