"""High-level repo map operations.

Each call loads the map from the cache, builds or reconciles it, and writes
it back. This is where the recovery decisions live:

* no usable map, or the staleness checker asks for it: full scan
* history unusable: rescan the working tree without git
* otherwise: incremental update from the base commit
"""

from pathlib import Path
from typing import Any

from .batch import full_scan
from .cache import RepoMapCache
from .config import RepoMapConfig, StateDirResolver, load_config
from .discovery import detect_languages
from .git import GitChangeDetector
from .indexer_logging import get_logger
from .models import ChangeSummary, RepoMap, UpdateResult
from .scanner import FileScanner
from .staleness import check_staleness
from .updater import incremental_update, resolve_scanner, update_without_git

logger = get_logger()


def _context(
    root_path: Path | str, config: RepoMapConfig | None
) -> tuple[Path, RepoMapConfig, RepoMapCache]:
    root = Path(root_path).resolve()
    config = config or load_config(root)
    return root, config, RepoMapCache(root, StateDirResolver(config))


def _build(
    root: Path,
    languages: list[str],
    scanner: FileScanner,
    config: RepoMapConfig,
    cache: RepoMapCache,
    git: GitChangeDetector | None,
) -> UpdateResult:
    """Full scan and save."""
    try:
        repo_map = full_scan(root, languages, scanner=scanner, config=config, git=git)
    except ValueError as e:
        return UpdateResult(success=False, error=str(e))
    cache.save(repo_map)
    files = len(repo_map.files)
    return UpdateResult(
        success=True,
        map=repo_map,
        changes=ChangeSummary(total=files, added=files),
    )


def init(
    root_path: Path | str,
    force: bool = False,
    languages: list[str] | None = None,
    scanner: FileScanner | None = None,
    config: RepoMapConfig | None = None,
    git: GitChangeDetector | None = None,
) -> UpdateResult:
    """Build a new map with a full scan.

    Args:
        root_path: Project root directory
        force: Rebuild even if a map already exists
        languages: Languages to index; detected when omitted
        scanner: Scanner to use; defaults to the installed ast-grep
        config: Configuration; loaded for the project when omitted
        git: Git access used to record the base revision
    """
    root, config, cache = _context(root_path, config)

    scanner, tool_failure = resolve_scanner(scanner, config)
    if tool_failure:
        return tool_failure

    if cache.exists() and not force:
        return UpdateResult(
            success=False,
            error=(
                "Repo map already exists. Use --force to rebuild "
                "or `repo-map update` to refresh."
            ),
        )

    languages = languages or detect_languages(root)
    if not languages:
        return UpdateResult(
            success=False, error="No supported languages detected in repository"
        )

    return _build(root, languages, scanner, config, cache, git)


def update(
    root_path: Path | str,
    full: bool = False,
    scanner: FileScanner | None = None,
    config: RepoMapConfig | None = None,
    git: GitChangeDetector | None = None,
) -> UpdateResult:
    """Refresh the stored map, choosing the cheapest safe strategy.

    Args:
        root_path: Project root directory
        full: Rebuild from scratch instead of updating
        scanner: Scanner to use; defaults to the installed ast-grep
        config: Configuration; loaded for the project when omitted
        git: Git access; defaults to a detector for ``root_path``
    """
    root, config, cache = _context(root_path, config)

    scanner, tool_failure = resolve_scanner(scanner, config)
    if tool_failure:
        return tool_failure

    existing = cache.load()
    if existing is None:
        return UpdateResult(
            success=False, error="No repo map found. Run `repo-map init` first."
        )

    languages = list(existing.project.languages) or detect_languages(root)
    if full:
        logger.info("Full rebuild requested")
        return _build(root, languages, scanner, config, cache, git)

    git = git or GitChangeDetector(root, timeout=config.git_timeout_seconds)
    if git.is_git_repo():
        staleness = check_staleness(root, existing, git=git)
        if staleness.suggest_full_rebuild:
            logger.info(f"Rebuilding repo map: {staleness.reason}")
            return _build(root, languages, scanner, config, cache, git)

    result = incremental_update(root, existing, scanner=scanner, git=git, config=config)

    if result.history_unavailable:
        logger.info(f"{result.error}; updating without history")
        result = update_without_git(root, existing, scanner=scanner, config=config, git=git)
    elif result.needs_full_rebuild:
        logger.info(f"Rebuilding repo map: {result.error}")
        return _build(root, languages, scanner, config, cache, git)

    if result.success and result.map is not None:
        cache.save(result.map)
    return result


def status(
    root_path: Path | str,
    config: RepoMapConfig | None = None,
    git: GitChangeDetector | None = None,
) -> dict[str, Any]:
    """Summary of the stored map with its staleness and marker state."""
    root, config, cache = _context(root_path, config)
    repo_map = cache.load()
    if repo_map is None:
        return {"exists": False}

    git = git or GitChangeDetector(root, timeout=config.git_timeout_seconds)
    staleness = check_staleness(root, repo_map, git=git)
    return {
        "exists": True,
        "status": {
            "generated": repo_map.generated,
            "updated": repo_map.updated,
            "commit": repo_map.git.commit if repo_map.git else None,
            "branch": repo_map.git.branch if repo_map.git else None,
            "files": len(repo_map.files),
            "symbols": repo_map.stats.total_symbols,
            "errors": len(repo_map.stats.errors),
            "languages": list(repo_map.project.languages),
            "markedStale": cache.is_marked_stale(),
            "staleness": staleness.to_dict(),
        },
    }


def load(root_path: Path | str, config: RepoMapConfig | None = None) -> RepoMap | None:
    """Load the stored map, if any."""
    _, _, cache = _context(root_path, config)
    return cache.load()


def exists(root_path: Path | str, config: RepoMapConfig | None = None) -> bool:
    """Check if a map is stored for the project."""
    _, _, cache = _context(root_path, config)
    return cache.exists()


def mark_stale(root_path: Path | str, config: RepoMapConfig | None = None) -> Path:
    """Set the stale marker for the project."""
    _, _, cache = _context(root_path, config)
    return cache.mark_stale()
