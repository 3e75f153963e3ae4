"""Bounded worker pool for file scans.

Workers only call the scanner and hand back an outcome; callers merge the
outcomes into the map after the pool has drained.
"""

import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from .discovery import to_posix_relative
from .errors import EngineError
from .indexer_logging import get_logger
from .models import FileRecord
from .scanner import FileScanner

logger = get_logger()

UNSCANNABLE_FILE = "Unsupported or unreadable file"


@dataclass
class ScanOutcome:
    """Result of scanning one file.

    Attributes:
        path: Project-relative POSIX path
        record: Extracted record, None on failure
        error: Failure message when ``record`` is None
    """

    path: str
    record: FileRecord | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def default_max_workers() -> int:
    return min(8, os.cpu_count() or 1)


def _scan_one(scanner: FileScanner, file_path: Path, root: Path) -> ScanOutcome:
    relative = to_posix_relative(file_path, root)
    record = scanner.scan_file(file_path, root)
    if record is None:
        return ScanOutcome(relative, error=UNSCANNABLE_FILE)
    return ScanOutcome(relative, record=record)


def scan_files(
    scanner: FileScanner,
    file_paths: Iterable[Path | str],
    root_path: Path | str,
    max_workers: int | None = None,
) -> list[ScanOutcome]:
    """Scan files concurrently and return outcomes sorted by path.

    A failure in one file never affects the others; it is returned as an
    outcome with ``error`` set.
    """
    root = Path(root_path)
    paths = [Path(p) if Path(p).is_absolute() else root / p for p in file_paths]
    if not paths:
        return []

    workers = max(1, min(max_workers or default_max_workers(), len(paths)))
    outcomes: list[ScanOutcome] = []

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_path = {
            executor.submit(_scan_one, scanner, path, root): path for path in paths
        }

        for future in as_completed(future_to_path):
            path = future_to_path[future]
            try:
                outcomes.append(future.result())
            except EngineError as e:
                logger.warning(f"Scan failed for {path}: {e.message}")
                outcomes.append(ScanOutcome(to_posix_relative(path, root), error=e.message))
            except Exception as e:
                logger.warning(f"Scan failed for {path}: {e}")
                outcomes.append(ScanOutcome(to_posix_relative(path, root), error=str(e)))

    outcomes.sort(key=lambda outcome: outcome.path)
    return outcomes
