"""Single-file scanning through the ast-grep engine.

``AstGrepScanner.scan_file`` runs every pattern of the file's language
against that one file and returns the resulting ``FileRecord``. Batch and
incremental scans go through the same method, so both produce identical
records for identical file contents.
"""

import asyncio
import hashlib
import subprocess
from pathlib import Path
from typing import Protocol

from .config import RepoMapConfig
from .errors import EngineError, EngineTimeoutError, ToolNotFoundError
from .extraction import SymbolCollector, parse_ndjson
from .indexer_logging import get_logger
from .installer import check_installed, get_short_install_suggestion, tool_error
from .models import SYMBOL_CATEGORIES, FileRecord
from .queries import (
    get_queries_for_language,
    get_sg_language_for_file,
    language_for_path,
)

logger = get_logger()

DEFAULT_ENGINE_TIMEOUT = 30.0


class FileScanner(Protocol):
    """Anything that turns one source file into a ``FileRecord``."""

    def scan_file(self, file_path: Path | str, root_path: Path | str) -> FileRecord | None:
        ...


def compute_hash(data: bytes) -> str:
    """Content hash: first 16 hex chars of SHA-256."""
    return hashlib.sha256(data).hexdigest()[:16]


class AstGrepScanner:
    """Extracts symbols and imports by invoking ast-grep once per pattern.

    Example:
        scanner = AstGrepScanner("sg")
        record = scanner.scan_file(root / "src/app.ts", root)
    """

    def __init__(self, command: str = "sg", timeout_seconds: float = DEFAULT_ENGINE_TIMEOUT):
        self.command = command
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_environment(cls, config: RepoMapConfig | None = None) -> "AstGrepScanner":
        """Build a scanner for the installed ast-grep.

        Raises:
            ToolNotFoundError: If ast-grep is missing or too old
        """
        status = check_installed()
        error = tool_error(status)
        if error:
            raise ToolNotFoundError(error, get_short_install_suggestion())
        timeout = config.engine_timeout_seconds if config else DEFAULT_ENGINE_TIMEOUT
        return cls(status.command or "sg", timeout)

    def run_pattern(
        self, file_path: Path, pattern: str, sg_language: str, root_path: Path
    ) -> list[dict]:
        """Run one pattern against one file.

        Raises:
            EngineTimeoutError: If ast-grep exceeds the timeout
            EngineError: If ast-grep cannot start or exits with status > 1
        """
        try:
            result = subprocess.run(
                [
                    self.command,
                    "run",
                    "--pattern",
                    pattern,
                    "--lang",
                    sg_language,
                    "--json=stream",
                    str(file_path),
                ],
                cwd=root_path,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineTimeoutError(file_path, self.timeout_seconds) from e
        except OSError as e:
            raise EngineError(file_path, f"could not run {self.command}: {e}") from e

        # Exit status 1 means no match
        if result.returncode > 1:
            stderr = (result.stderr or "").strip()
            raise EngineError(
                file_path, f"ast-grep exited with {result.returncode}: {stderr[:200]}"
            )
        return parse_ndjson(result.stdout)

    def scan_file(self, file_path: Path | str, root_path: Path | str) -> FileRecord | None:
        """Scan a single file.

        Args:
            file_path: Absolute path, or path relative to ``root_path``
            root_path: Project root; ast-grep runs with it as working directory

        Returns:
            FileRecord, or None for unsupported extensions and unreadable files

        Raises:
            EngineError: If ast-grep fails for this file
        """
        root = Path(root_path)
        path = Path(file_path)
        if not path.is_absolute():
            path = root / path

        language = language_for_path(path)
        queries = get_queries_for_language(language) if language else None
        if queries is None:
            return None

        try:
            data = path.read_bytes()
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None

        sg_language = get_sg_language_for_file(path, language)
        collector = SymbolCollector(language)

        for category in SYMBOL_CATEGORIES:
            for pattern in getattr(queries, category):
                for match in self.run_pattern(path, pattern.pattern, sg_language, root):
                    collector.add_match(category, match, pattern)

        for pattern in queries.imports:
            for match in self.run_pattern(path, pattern.pattern, sg_language, root):
                collector.add_import_match(match, pattern)

        content = data.decode("utf-8", errors="replace")
        return FileRecord(
            hash=compute_hash(data),
            language=language,
            size=len(data),
            symbols=collector.build(content),
            imports=collector.imports,
        )

    async def scan_file_async(
        self, file_path: Path | str, root_path: Path | str
    ) -> FileRecord | None:
        """Run ``scan_file`` in a worker thread so several scans can overlap."""
        return await asyncio.to_thread(self.scan_file, file_path, root_path)
