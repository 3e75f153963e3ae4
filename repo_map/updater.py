"""Incremental repo map updates.

Two modes share one result type:

* ``incremental_update`` reconciles the map with the commits between its base
  revision and HEAD, rescanning only touched files.
* ``update_without_git`` walks the tree and rescans everything, for projects
  where history cannot be used.

Neither mode falls back to the other on its own. ``UpdateResult`` tells the
caller what to do next (``history_unavailable`` or ``needs_full_rebuild``);
``repo_map.service.update`` implements that decision.
"""

from pathlib import Path
from typing import Any

from .concurrency import ScanOutcome, scan_files
from .config import RepoMapConfig, load_config
from .discovery import (
    GitignoreMatcher,
    find_files_for_languages,
    is_excluded,
    to_posix_relative,
)
from .git import GitChangeDetector
from .indexer_logging import get_logger
from .installer import check_installed, get_install_instructions, tool_error
from .models import ChangeSummary, RepoMap, ScanFailure, UpdateResult, utc_now_iso
from .queries import extensions_for_languages
from .scanner import AstGrepScanner, FileScanner

logger = get_logger()

INVALID_MAP_ERROR = "Invalid repo map"


def _coerce_map(repo_map: RepoMap | dict[str, Any] | None) -> RepoMap | None:
    """Accept a map object or its persisted dict; None when unusable."""
    if repo_map is None:
        return None
    if isinstance(repo_map, RepoMap):
        return repo_map if repo_map.files is not None else None
    if isinstance(repo_map, dict):
        try:
            return RepoMap.from_dict(repo_map)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Repo map could not be read: {e}")
            return None
    return None


def resolve_scanner(
    scanner: FileScanner | None, config: RepoMapConfig
) -> tuple[FileScanner | None, UpdateResult | None]:
    """Injected scanner, else one for the installed ast-grep, else a failure result."""
    if scanner is not None:
        return scanner, None
    status = check_installed()
    error = tool_error(status)
    if error:
        return None, UpdateResult(
            success=False, error=error, install_suggestion=get_install_instructions()
        )
    return AstGrepScanner(status.command or "sg", config.engine_timeout_seconds), None


def _map_languages(repo_map: RepoMap) -> list[str]:
    if repo_map.project.languages:
        return list(repo_map.project.languages)
    return sorted({record.language for record in repo_map.files.values()})


def _apply_outcomes(repo_map: RepoMap, outcomes: list[ScanOutcome]) -> list[ScanFailure]:
    """Replace records with fresh scans; failed files keep no record."""
    failures = []
    for outcome in outcomes:
        if outcome.record is not None:
            repo_map.set_file(outcome.path, outcome.record)
        else:
            repo_map.remove_file(outcome.path)
            failures.append(ScanFailure(outcome.path, outcome.error or ""))
    return failures


def incremental_update(
    root_path: Path | str,
    repo_map: RepoMap | dict[str, Any] | None,
    scanner: FileScanner | None = None,
    git: GitChangeDetector | None = None,
    config: RepoMapConfig | None = None,
    max_workers: int | None = None,
) -> UpdateResult:
    """Bring ``repo_map`` up to date with the commits since its base revision.

    The map is mutated in place and returned in the result. Changes to files
    of languages the map does not index are ignored entirely.

    Args:
        root_path: Project root directory
        repo_map: Previously built map (object or persisted dict)
        scanner: Scanner to use; defaults to the installed ast-grep
        git: Git access; defaults to a detector for ``root_path``
        config: Configuration; loaded for the project when omitted
        max_workers: Worker pool size; defaults to the configured value

    Returns:
        UpdateResult; on failure ``needs_full_rebuild`` or
        ``history_unavailable`` tells the caller how to recover
    """
    root = Path(root_path).resolve()
    config = config or load_config(root)

    scanner, tool_failure = resolve_scanner(scanner, config)
    if tool_failure:
        return tool_failure

    current = _coerce_map(repo_map)
    if current is None:
        return UpdateResult(success=False, error=INVALID_MAP_ERROR, needs_full_rebuild=True)

    current.docs = None
    git = git or GitChangeDetector(root, timeout=config.git_timeout_seconds)

    if not git.is_git_repo():
        return UpdateResult(
            success=False,
            map=current,
            error="Not a git repository",
            history_unavailable=True,
        )

    base_commit = current.git.commit if current.git else None
    if not base_commit:
        return UpdateResult(
            success=False,
            map=current,
            error="Repo map has no base commit. Full rebuild required.",
            needs_full_rebuild=True,
        )

    if not git.commit_exists(base_commit):
        return UpdateResult(
            success=False,
            map=current,
            error="Base commit not found (history rewritten). Full rebuild required.",
            needs_full_rebuild=True,
        )

    changes = git.diff_since(base_commit)
    if changes is None:
        return UpdateResult(
            success=False,
            map=current,
            error="Could not read git history",
            history_unavailable=True,
        )

    extensions = extensions_for_languages(_map_languages(current))
    ignore = GitignoreMatcher(root) if config.respect_gitignore else None

    def relevant(path: str) -> bool:
        if Path(path).suffix.lower() not in extensions:
            return False
        if is_excluded(path, config.exclude_dirs):
            return False
        return not (ignore and ignore.matches(path))

    def tracked(path: str) -> bool:
        # Indexed paths must always be removable, even once ignored
        return path in current.files or relevant(path)

    added = [p for p in changes.added if relevant(p)]
    modified = [p for p in changes.modified if relevant(p)]
    deleted = [p for p in changes.deleted if tracked(p)]
    renamed = [(old, new) for old, new in changes.renamed if tracked(old) or relevant(new)]

    # Indexed files whose path is now ignored or excluded leave the map
    deleted += [
        p for p in changes.added + changes.modified if p in current.files and not relevant(p)
    ]

    # A rename is a deletion of the old path plus an addition of the new one
    removed = deleted + [old for old, _ in renamed if tracked(old)]
    to_scan = added + modified + [new for _, new in renamed if relevant(new)]

    summary = ChangeSummary(
        added=len(added),
        deleted=len(deleted),
        renamed=len(renamed),
        total=len(added) + len(modified) + len(deleted) + len(renamed),
    )

    if summary.total == 0:
        logger.debug(f"No indexed files changed since {base_commit[:8]}")
        current.git = git.get_git_info()
        current.updated = utc_now_iso()
        return UpdateResult(success=True, map=current, changes=summary)

    for path in removed:
        current.remove_file(path)

    existing = []
    for path in dict.fromkeys(to_scan):
        if (root / path).is_file():
            existing.append(path)
        else:
            current.remove_file(path)

    outcomes = scan_files(scanner, existing, root, max_workers or config.max_workers)
    summary.updated = sum(1 for outcome in outcomes if outcome.ok)

    touched = set(removed) | set(to_scan)
    errors = [e for e in current.stats.errors if e.file not in touched]
    errors.extend(_apply_outcomes(current, outcomes))
    current.stats.errors = errors

    current.recalculate_stats()
    current.git = git.get_git_info()
    current.updated = utc_now_iso()

    logger.info(
        f"Incremental update: {summary.updated} rescanned, {summary.added} added, "
        f"{summary.deleted} deleted, {summary.renamed} renamed"
    )
    return UpdateResult(success=True, map=current, changes=summary)


def update_without_git(
    root_path: Path | str,
    repo_map: RepoMap | dict[str, Any] | None,
    scanner: FileScanner | None = None,
    config: RepoMapConfig | None = None,
    max_workers: int | None = None,
    git: GitChangeDetector | None = None,
) -> UpdateResult:
    """Reconcile ``repo_map`` with the working tree without using history.

    Every indexed-language file on disk is rescanned and its record replaced;
    indexed paths no longer on disk are dropped. ``changes.updated`` counts
    files whose content hash changed.
    """
    root = Path(root_path).resolve()
    config = config or load_config(root)

    scanner, tool_failure = resolve_scanner(scanner, config)
    if tool_failure:
        return tool_failure

    current = _coerce_map(repo_map)
    if current is None:
        return UpdateResult(success=False, error=INVALID_MAP_ERROR, needs_full_rebuild=True)

    current.docs = None

    on_disk = {
        to_posix_relative(path, root): path
        for path in find_files_for_languages(
            root, _map_languages(current), config.exclude_dirs, config.respect_gitignore
        )
    }

    summary = ChangeSummary()
    for path in sorted(set(current.files) - set(on_disk)):
        current.remove_file(path)
        summary.deleted += 1

    previous_hashes = {path: record.hash for path, record in current.files.items()}
    outcomes = scan_files(scanner, on_disk.values(), root, max_workers or config.max_workers)

    for outcome in outcomes:
        if outcome.record is None:
            continue
        previous = previous_hashes.get(outcome.path)
        if previous is None:
            summary.added += 1
        elif previous != outcome.record.hash:
            summary.updated += 1

    current.stats.errors = _apply_outcomes(current, outcomes)
    summary.total = summary.added + summary.updated + summary.deleted

    current.recalculate_stats()
    git = git or GitChangeDetector(root, timeout=config.git_timeout_seconds)
    current.git = git.get_git_info()
    current.updated = utc_now_iso()

    logger.info(
        f"Update without history: {summary.added} added, {summary.updated} modified, "
        f"{summary.deleted} deleted"
    )
    return UpdateResult(success=True, map=current, changes=summary)
