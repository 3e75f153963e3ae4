"""Exception types raised by repo-map.

Expected failure modes (missing tool, invalid map, unusable history) are
reported through result objects. These exceptions cover engine failures,
which callers isolate per file, and precondition violations.
"""

from pathlib import Path


class RepoMapError(Exception):
    """Base class for repo-map errors."""


class ToolNotFoundError(RepoMapError):
    """ast-grep is not installed or is older than the minimum version."""

    def __init__(self, message: str = "ast-grep not found", suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion


class EngineError(RepoMapError):
    """ast-grep exited with an error for a single file."""

    def __init__(self, file_path: Path | str, message: str):
        super().__init__(f"{file_path}: {message}")
        self.file_path = str(file_path)
        self.message = message


class EngineTimeoutError(EngineError):
    """ast-grep did not finish within the per-invocation timeout."""

    def __init__(self, file_path: Path | str, timeout_seconds: float):
        super().__init__(file_path, f"ast-grep timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds
