"""Staleness detection for a persisted repo map."""

from pathlib import Path

from .git import GitChangeDetector
from .indexer_logging import get_logger
from .models import RepoMap, StalenessResult

logger = get_logger()


def check_staleness(
    root_path: Path | str,
    repo_map: RepoMap | None,
    git: GitChangeDetector | None = None,
) -> StalenessResult:
    """Decide whether ``repo_map`` can still be updated incrementally.

    Rules, in order:

    1. No map or no base commit: stale, full rebuild.
    2. Base commit no longer resolves (rebase, shallow clone): stale, full rebuild.
    3. Recorded branch differs from the current branch: stale, full rebuild.
    4. ``commits_behind`` is reported but never marks the map stale by itself.

    The map is not modified.
    """
    commit = repo_map.git.commit if repo_map and repo_map.git else None
    if not commit:
        return StalenessResult(
            is_stale=True,
            reason="Missing base commit in repo-map",
            suggest_full_rebuild=True,
        )

    git = git or GitChangeDetector(root_path)
    if not git.commit_exists(commit):
        return StalenessResult(
            is_stale=True,
            reason="Base commit no longer exists (rebased?)",
            suggest_full_rebuild=True,
        )

    result = StalenessResult()

    recorded_branch = repo_map.git.branch
    current_branch = git.get_current_branch()
    if recorded_branch and current_branch and recorded_branch != current_branch:
        result.is_stale = True
        result.reason = f"Branch changed from {recorded_branch} to {current_branch}"
        result.suggest_full_rebuild = True

    result.commits_behind = git.get_commits_behind(commit) or 0
    logger.debug(
        f"Staleness for {commit[:8]}: stale={result.is_stale}, "
        f"{result.commits_behind} commits behind"
    )
    return result
