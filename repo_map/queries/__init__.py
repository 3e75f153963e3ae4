"""Language-specific query patterns for ast-grep."""

from pathlib import Path

from . import go, java, javascript, python, rust, typescript
from .base import LanguageQueries, MultiName, QueryPattern

# Language name -> file extensions (lowercase, with dot)
LANGUAGE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".tsx", ".mts", ".cts"),
    "python": (".py", ".pyw"),
    "rust": (".rs",),
    "go": (".go",),
    "java": (".java",),
}

_QUERIES: dict[str, LanguageQueries] = {
    "javascript": javascript.QUERIES,
    "typescript": typescript.QUERIES,
    "python": python.QUERIES,
    "rust": rust.QUERIES,
    "go": go.QUERIES,
    "java": java.QUERIES,
}

_ALIASES = {"js": "javascript", "node": "javascript", "ts": "typescript", "py": "python"}


def normalize_language(language: str) -> str | None:
    """Canonical language name, or None for unsupported languages."""
    name = _ALIASES.get(language.lower(), language.lower())
    return name if name in _QUERIES else None


def get_queries_for_language(language: str) -> LanguageQueries | None:
    """Get query patterns for a language."""
    name = normalize_language(language)
    return _QUERIES[name] if name else None


def language_for_path(path: Path | str) -> str | None:
    """Language of a file by extension, or None when unsupported."""
    ext = Path(path).suffix.lower()
    for language, extensions in LANGUAGE_EXTENSIONS.items():
        if ext in extensions:
            return language
    return None


def extensions_for_languages(languages: list[str]) -> set[str]:
    """All extensions belonging to ``languages``."""
    extensions: set[str] = set()
    for language in languages:
        name = normalize_language(language)
        if name:
            extensions.update(LANGUAGE_EXTENSIONS[name])
    return extensions


def get_sg_language_for_file(path: Path | str, language: str) -> str:
    """ast-grep ``--lang`` value for a file; JSX/TSX need their own grammar."""
    ext = Path(path).suffix.lower()
    if language == "javascript" and ext == ".jsx":
        return "jsx"
    if language == "typescript" and ext == ".tsx":
        return "tsx"
    return normalize_language(language) or "javascript"


__all__ = [
    "LANGUAGE_EXTENSIONS",
    "LanguageQueries",
    "MultiName",
    "QueryPattern",
    "extensions_for_languages",
    "get_queries_for_language",
    "get_sg_language_for_file",
    "language_for_path",
    "normalize_language",
]
