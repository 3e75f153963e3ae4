"""Git access for incremental repo-map updates.

GitChangeDetector wraps the handful of git queries the updater and the
staleness checker need: repository detection, head commit and branch,
commit reachability, commit distance, and the name-status diff between the
map's base commit and HEAD.
"""

import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from ..indexer_logging import get_logger
from ..models import GitInfo

DEFAULT_GIT_TIMEOUT = 30.0

_COMMIT_RE = re.compile(r"^[0-9a-fA-F]{4,64}$")

# Failures of a single git invocation
GIT_ERRORS = (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError)


@dataclass
class ChangeSet:
    """Changes between two commits, as project-relative POSIX paths.

    Attributes:
        added: Newly added paths (copies included)
        modified: Paths whose content or type changed
        deleted: Removed paths
        renamed: (old_path, new_path) pairs
        base_commit: The commit the diff was taken from
    """

    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[tuple[str, str]] = field(default_factory=list)
    base_commit: str | None = None

    @property
    def has_changes(self) -> bool:
        """Check if any changes were detected."""
        return bool(self.added or self.modified or self.deleted or self.renamed)

    @property
    def total_files(self) -> int:
        """Total number of files affected."""
        return len(self.added) + len(self.modified) + len(self.deleted) + len(self.renamed)

    def summary(self) -> str:
        """Get a human-readable summary of changes."""
        parts = []
        if self.added:
            parts.append(f"{len(self.added)} added")
        if self.modified:
            parts.append(f"{len(self.modified)} modified")
        if self.deleted:
            parts.append(f"{len(self.deleted)} deleted")
        if self.renamed:
            parts.append(f"{len(self.renamed)} renamed")
        return ", ".join(parts) if parts else "No changes detected"


class GitChangeDetector:
    """Git queries scoped to a project directory.

    Paths in diffs are relative to ``project_path`` (``git diff --relative``),
    so a project nested inside a larger repository sees only its own files.

    Example:
        git = GitChangeDetector(project_path)
        if git.commit_exists(base):
            changes = git.diff_since(base)
    """

    def __init__(self, project_path: Path | str, timeout: float = DEFAULT_GIT_TIMEOUT):
        """Initialize the detector.

        Args:
            project_path: Root directory of the project
            timeout: Per-command timeout in seconds
        """
        self.project_path = Path(project_path).resolve()
        self.timeout = timeout
        self.logger = get_logger()
        self._is_git_repo: bool | None = None

    def is_git_repo(self) -> bool:
        """Check if the project directory is inside a git work tree."""
        if self._is_git_repo is not None:
            return self._is_git_repo

        try:
            output = self._run_git_command(["rev-parse", "--is-inside-work-tree"])
            self._is_git_repo = output.strip() == "true"
        except GIT_ERRORS:
            self._is_git_repo = False

        return self._is_git_repo

    def get_current_commit(self) -> str | None:
        """Full SHA of HEAD, or None outside a repository or before the first commit."""
        if not self.is_git_repo():
            return None
        try:
            return self._run_git_command(["rev-parse", "HEAD"]).strip() or None
        except GIT_ERRORS:
            return None

    def get_current_branch(self) -> str | None:
        """Current branch name ("HEAD" when detached)."""
        if not self.is_git_repo():
            return None
        try:
            return self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"]).strip() or None
        except GIT_ERRORS:
            return None

    def get_git_info(self) -> GitInfo | None:
        """Head commit and branch, or None when there is no commit to record."""
        commit = self.get_current_commit()
        if not commit:
            return None
        return GitInfo(commit=commit, branch=self.get_current_branch())

    def commit_exists(self, commit: str | None) -> bool:
        """Check that ``commit`` names a commit object in this repository."""
        if not commit or not _COMMIT_RE.match(commit) or not self.is_git_repo():
            return False
        try:
            self._run_git_command(["cat-file", "-e", f"{commit}^{{commit}}"])
            return True
        except GIT_ERRORS:
            return False

    def get_commits_behind(self, commit: str) -> int | None:
        """Number of commits reachable from HEAD but not from ``commit``."""
        if not self.commit_exists(commit):
            return None
        try:
            output = self._run_git_command(["rev-list", "--count", f"{commit}..HEAD"])
            return int(output.strip() or 0)
        except (*GIT_ERRORS, ValueError):
            return None

    def diff_since(self, base_commit: str) -> ChangeSet | None:
        """Committed changes between ``base_commit`` and HEAD.

        Returns:
            Parsed ChangeSet, or None when git cannot produce the diff
        """
        if not self.commit_exists(base_commit):
            return None
        try:
            output = self._run_git_command(
                ["diff", "--name-status", "-M", "--relative", base_commit, "HEAD"]
            )
        except GIT_ERRORS as e:
            self.logger.warning(f"Git diff failed: {e}")
            return None

        changes = self._parse_name_status(output)
        changes.base_commit = base_commit
        self.logger.debug(f"Changes since {base_commit[:8]}: {changes.summary()}")
        return changes

    def _parse_name_status(self, output: str) -> ChangeSet:
        """Parse git diff --name-status output.

        Format examples:
            A\tfile.py          # Added
            M\tfile.py          # Modified
            D\tfile.py          # Deleted
            R100\told.py\tnew.py  # Renamed (100% similarity)
            C075\tsrc.py\tcopy.py # Copied
        """
        changes = ChangeSet()

        for line in output.splitlines():
            parts = line.split("\t")
            if len(parts) < 2 or not parts[0]:
                continue

            status = parts[0]
            if status.startswith("R") and len(parts) >= 3:
                changes.renamed.append((parts[1], parts[2]))
            elif status.startswith("C") and len(parts) >= 3:
                changes.added.append(parts[2])
            elif status == "A":
                changes.added.append(parts[1])
            elif status == "D":
                changes.deleted.append(parts[1])
            else:
                # M, T (type change) and anything newer git may report
                changes.modified.append(parts[-1])

        return changes

    def _run_git_command(self, args: list[str]) -> str:
        """Run a git command and return stdout.

        Raises:
            subprocess.CalledProcessError: If the command fails
            subprocess.TimeoutExpired: If it exceeds the timeout
            OSError: If git cannot be started
        """
        result = subprocess.run(
            ["git", "-c", "core.quotepath=off", *args],
            cwd=self.project_path,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return result.stdout
