"""Full (batch) scan of a project into a new repo map."""

import time
from collections.abc import Iterable
from pathlib import Path

from .concurrency import scan_files
from .config import RepoMapConfig, load_config
from .discovery import detect_project_type, find_files_for_language, to_posix_relative
from .git import GitChangeDetector
from .indexer_logging import get_logger
from .models import ProjectInfo, RepoMap, ScanFailure
from .queries import normalize_language
from .scanner import AstGrepScanner, FileScanner

logger = get_logger()


def normalize_languages(languages: Iterable[str]) -> list[str]:
    """Canonical, de-duplicated language names in the given order.

    Raises:
        ValueError: If a language is not supported
    """
    normalized: list[str] = []
    for language in languages:
        name = normalize_language(language)
        if name is None:
            raise ValueError(f"Unsupported language: {language}")
        if name not in normalized:
            normalized.append(name)
    return normalized


def full_scan(
    root_path: Path | str,
    languages: Iterable[str],
    scanner: FileScanner | None = None,
    max_workers: int | None = None,
    config: RepoMapConfig | None = None,
    git: GitChangeDetector | None = None,
) -> RepoMap:
    """Build a complete map of ``root_path``.

    Every record is produced by ``scanner.scan_file``, so a full scan and a
    single-file rescan of unchanged content always agree. Files that fail to
    scan are listed in ``stats.errors`` and never abort the batch.

    Args:
        root_path: Project root directory
        languages: Languages to index
        scanner: Scanner to use; defaults to the installed ast-grep
        max_workers: Worker pool size; defaults to the configured value
        config: Configuration; loaded for the project when omitted
        git: Git access used to record the base revision

    Returns:
        A new RepoMap

    Raises:
        ValueError: If the root is not a directory or a language is unsupported
        ToolNotFoundError: If no scanner is given and ast-grep is unusable
    """
    root = Path(root_path).resolve()
    if not root.is_dir():
        raise ValueError(f"Not a directory: {root_path}")

    selected = normalize_languages(languages)
    config = config or load_config(root)
    if scanner is None:
        scanner = AstGrepScanner.from_environment(config)
    git = git or GitChangeDetector(root, timeout=config.git_timeout_seconds)

    started = time.monotonic()

    # A path belongs to the first language that claims it
    claimed: dict[str, Path] = {}
    for language in selected:
        for path in find_files_for_language(
            root, language, config.exclude_dirs, config.respect_gitignore
        ):
            claimed.setdefault(to_posix_relative(path, root), path)

    logger.info(f"Scanning {len(claimed)} files in {root} ({', '.join(selected)})")
    outcomes = scan_files(scanner, claimed.values(), root, max_workers or config.max_workers)

    repo_map = RepoMap(
        git=git.get_git_info(),
        project=ProjectInfo(type=detect_project_type(selected), languages=selected),
    )
    for outcome in outcomes:
        if outcome.record is not None:
            repo_map.set_file(outcome.path, outcome.record)
        else:
            repo_map.stats.errors.append(ScanFailure(outcome.path, outcome.error or ""))

    repo_map.recalculate_stats()
    repo_map.stats.scan_duration_ms = int((time.monotonic() - started) * 1000)

    logger.info(
        f"Indexed {repo_map.stats.total_files} files, {repo_map.stats.total_symbols} symbols"
        f" ({len(repo_map.stats.errors)} errors) in {repo_map.stats.scan_duration_ms}ms"
    )
    return repo_map
