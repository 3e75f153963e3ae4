"""Source file discovery and language detection.

Walks a project tree skipping VCS, build, dependency and tool-state
directories, hidden directories, and anything matched by the root
``.gitignore`` (gitignore semantics via ``pathspec``).
"""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

import pathspec

from .indexer_logging import get_logger
from .queries import LANGUAGE_EXTENSIONS, extensions_for_languages, normalize_language

logger = get_logger()

DEFAULT_EXCLUDE_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "dist",
        "build",
        "out",
        "coverage",
        "vendor",
        "target",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".tox",
        ".next",
        ".nuxt",
        ".cache",
        ".idea",
        ".vscode",
        ".claude",
        ".opencode",
        ".codex",
        ".venv",
        "venv",
        "env",
    }
)

# Sampling cap for extension-based language detection
LANGUAGE_EXTENSION_SCAN_LIMIT = 500

# Config files that identify a language without walking the tree
CONFIG_INDICATORS = {
    "javascript": ("package.json", "jsconfig.json"),
    "typescript": ("tsconfig.json", "tsconfig.base.json"),
    "python": ("pyproject.toml", "setup.py", "requirements.txt", "Pipfile"),
    "rust": ("Cargo.toml",),
    "go": ("go.mod", "go.sum"),
    "java": ("pom.xml", "build.gradle", "build.gradle.kts"),
}

PROJECT_TYPE_PRIORITY = ("typescript", "javascript", "python", "rust", "go", "java")


class GitignoreMatcher:
    """Matches project-relative paths against the root ``.gitignore``."""

    def __init__(self, project_root: Path | str):
        self.project_root = Path(project_root)
        self._spec: pathspec.PathSpec | None = None
        self._load(self.project_root / ".gitignore")

    def _load(self, ignore_path: Path) -> None:
        if not ignore_path.is_file():
            return
        try:
            lines = ignore_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {ignore_path}: {e}")
            return

        patterns = [
            line.strip()
            for line in lines
            if line.strip() and not line.lstrip().startswith("#")
        ]
        if patterns:
            self._spec = pathspec.PathSpec.from_lines(
                pathspec.patterns.GitWildMatchPattern, patterns
            )

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """True if the POSIX relative path is ignored."""
        if self._spec is None:
            return False
        if is_dir and not relative_path.endswith("/"):
            relative_path += "/"
        return self._spec.match_file(relative_path)


def to_posix_relative(path: Path | str, root: Path | str) -> str:
    """Project-relative POSIX path of ``path``."""
    return Path(os.path.relpath(path, root)).as_posix()


def is_excluded(relative_path: str, exclude_dirs: Iterable[str] = ()) -> bool:
    """True if the walk in ``iter_files`` would never reach this path."""
    excluded = DEFAULT_EXCLUDE_DIRS | set(exclude_dirs)
    return any(
        part in excluded or part.startswith(".")
        for part in relative_path.split("/")[:-1]
    )


def iter_files(
    root_path: Path | str,
    extensions: set[str] | None = None,
    exclude_dirs: Iterable[str] = (),
    respect_gitignore: bool = True,
) -> Iterator[Path]:
    """Yield files under ``root_path`` in a stable, sorted walk order.

    Args:
        root_path: Project root
        extensions: Lowercase extensions to keep; None keeps every file
        exclude_dirs: Directory names excluded in addition to the defaults
        respect_gitignore: Skip paths matched by the root ``.gitignore``
    """
    root = Path(root_path)
    excluded = DEFAULT_EXCLUDE_DIRS | set(exclude_dirs)
    ignore = GitignoreMatcher(root) if respect_gitignore else None

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        kept = []
        for name in sorted(dirnames):
            if name.startswith(".") or name in excluded:
                continue
            if ignore and ignore.matches(to_posix_relative(current / name, root), is_dir=True):
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            file_path = current / name
            if extensions is not None and file_path.suffix.lower() not in extensions:
                continue
            if ignore and ignore.matches(to_posix_relative(file_path, root)):
                continue
            if file_path.is_file():
                yield file_path


def find_files_for_language(
    root_path: Path | str,
    language: str,
    exclude_dirs: Iterable[str] = (),
    respect_gitignore: bool = True,
) -> list[Path]:
    """All files of one language under the root, sorted."""
    extensions = extensions_for_languages([language])
    if not extensions:
        return []
    return list(iter_files(root_path, extensions, exclude_dirs, respect_gitignore))


def find_files_for_languages(
    root_path: Path | str,
    languages: Iterable[str],
    exclude_dirs: Iterable[str] = (),
    respect_gitignore: bool = True,
) -> list[Path]:
    """All files of any of ``languages`` under the root, sorted."""
    extensions = extensions_for_languages(list(languages))
    if not extensions:
        return []
    return list(iter_files(root_path, extensions, exclude_dirs, respect_gitignore))


def scan_for_extensions(root_path: Path | str, max_files: int = 100) -> set[str]:
    """Sample file extensions present in the tree (at most ``max_files`` files)."""
    found: set[str] = set()
    count = 0
    for file_path in iter_files(root_path):
        if count >= max_files:
            break
        ext = file_path.suffix.lower()
        if ext:
            found.add(ext)
            count += 1
    return found


def detect_languages(root_path: Path | str) -> list[str]:
    """Detect supported languages from config files and a sampled walk."""
    root = Path(root_path)
    detected = set()

    for language, indicators in CONFIG_INDICATORS.items():
        if any((root / name).exists() for name in indicators):
            detected.add(language)

    extensions = scan_for_extensions(root, LANGUAGE_EXTENSION_SCAN_LIMIT)
    for language, language_extensions in LANGUAGE_EXTENSIONS.items():
        if extensions.intersection(language_extensions):
            detected.add(language)

    languages = [language for language in LANGUAGE_EXTENSIONS if language in detected]
    logger.debug(f"Detected languages in {root}: {languages}")
    return languages


def detect_project_type(languages: list[str]) -> str:
    """Primary project type; TypeScript projects report as ``node``."""
    normalized = [normalize_language(language) or language for language in languages]
    for language in PROJECT_TYPE_PRIORITY:
        if language in normalized:
            return "node" if language == "typescript" else language
    return languages[0] if languages else "unknown"
