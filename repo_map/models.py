"""Type definitions for the repo map.

The map is persisted as camelCase JSON. Every record type here owns its own
``to_dict``/``from_dict`` pair so the cache layer never handles raw shapes.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

MAP_FORMAT_VERSION = "1.0.0"

SYMBOL_CATEGORIES = ("exports", "functions", "classes", "types", "constants")


class SymbolKind(str, Enum):
    """Kinds of extracted symbols."""

    FUNCTION = "function"
    CLASS = "class"
    TYPE = "type"
    CONSTANT = "constant"
    VARIABLE = "variable"
    VALUE = "value"
    EXPORT = "export"
    RE_EXPORT = "re-export"
    NAMESPACE = "namespace"
    MODULE = "module"


class ImportKind(str, Enum):
    """Import styles, per source language."""

    IMPORT = "import"
    FROM = "from"
    DEFAULT = "default"
    NAMESPACE = "namespace"
    NAMED = "named"
    SIDE_EFFECT = "side-effect"
    REQUIRE = "require"
    TYPE = "type"
    USE = "use"


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class SymbolEntry:
    """A single named symbol found in a file.

    Attributes:
        name: Symbol identifier
        kind: What the pattern that found it describes
        line: 1-based line number, None when inferred without a location
        exported: Whether the symbol is part of the file's public surface
    """

    name: str
    kind: SymbolKind
    line: int | None = None
    exported: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "line": self.line,
            "exported": self.exported,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SymbolEntry":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            kind=SymbolKind(data["kind"]),
            line=data.get("line"),
            exported=bool(data.get("exported", False)),
        )


@dataclass
class ImportEdge:
    """An import statement: raw specifier, style and line."""

    source: str
    kind: ImportKind
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"source": self.source, "kind": self.kind.value, "line": self.line}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImportEdge":
        """Create from dictionary."""
        return cls(
            source=data["source"],
            kind=ImportKind(data["kind"]),
            line=data.get("line"),
        )


@dataclass
class FileSymbols:
    """Symbols of one file, grouped by category."""

    exports: list[SymbolEntry] = field(default_factory=list)
    functions: list[SymbolEntry] = field(default_factory=list)
    classes: list[SymbolEntry] = field(default_factory=list)
    types: list[SymbolEntry] = field(default_factory=list)
    constants: list[SymbolEntry] = field(default_factory=list)

    @property
    def definition_count(self) -> int:
        """Number of defined symbols (exports are views over definitions)."""
        return (
            len(self.functions)
            + len(self.classes)
            + len(self.types)
            + len(self.constants)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            category: [entry.to_dict() for entry in getattr(self, category)]
            for category in SYMBOL_CATEGORIES
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileSymbols":
        """Create from dictionary."""
        return cls(
            **{
                category: [SymbolEntry.from_dict(e) for e in data.get(category) or []]
                for category in SYMBOL_CATEGORIES
            }
        )


@dataclass
class FileRecord:
    """Per-file extracted data.

    Attributes:
        hash: First 16 hex chars of the SHA-256 of the file bytes
        language: Language name from the extension table
        size: File length in bytes
        symbols: Extracted symbols by category
        imports: Import edges in discovery order
    """

    hash: str
    language: str
    size: int
    symbols: FileSymbols = field(default_factory=FileSymbols)
    imports: list[ImportEdge] = field(default_factory=list)

    def dependency_sources(self) -> list[str]:
        """Deduplicated import specifiers, first occurrence order."""
        return list(dict.fromkeys(edge.source for edge in self.imports))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "hash": self.hash,
            "language": self.language,
            "size": self.size,
            "symbols": self.symbols.to_dict(),
            "imports": [edge.to_dict() for edge in self.imports],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        """Create from dictionary."""
        return cls(
            hash=data["hash"],
            language=data["language"],
            size=data.get("size", 0),
            symbols=FileSymbols.from_dict(data.get("symbols") or {}),
            imports=[ImportEdge.from_dict(e) for e in data.get("imports") or []],
        )


@dataclass
class GitInfo:
    """Base revision the map was last synchronized against."""

    commit: str
    branch: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"commit": self.commit, "branch": self.branch}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GitInfo | None":
        """Create from dictionary; None when no commit is recorded."""
        if not data or not data.get("commit"):
            return None
        return cls(commit=data["commit"], branch=data.get("branch"))


@dataclass
class ProjectInfo:
    """Project-level metadata."""

    type: str = "unknown"
    languages: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "languages": list(self.languages),
            "frameworks": list(self.frameworks),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProjectInfo":
        """Create from dictionary."""
        data = data or {}
        return cls(
            type=data.get("type", "unknown"),
            languages=list(data.get("languages") or []),
            frameworks=list(data.get("frameworks") or []),
        )


@dataclass
class ScanFailure:
    """A file that could not be scanned."""

    file: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"file": self.file, "error": self.error}


@dataclass
class MapStats:
    """Aggregate statistics of a map."""

    total_files: int = 0
    total_symbols: int = 0
    scan_duration_ms: int = 0
    errors: list[ScanFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalFiles": self.total_files,
            "totalSymbols": self.total_symbols,
            "scanDurationMs": self.scan_duration_ms,
            "errors": [error.to_dict() for error in self.errors],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "MapStats":
        """Create from dictionary."""
        data = data or {}
        return cls(
            total_files=data.get("totalFiles", 0),
            total_symbols=data.get("totalSymbols", 0),
            scan_duration_ms=data.get("scanDurationMs", 0),
            errors=[
                ScanFailure(file=e.get("file", ""), error=e.get("error", ""))
                for e in data.get("errors") or []
            ],
        )


@dataclass
class RepoMap:
    """The persisted index of a project.

    ``dependencies`` holds an entry for a path iff that file has imports.
    Use ``set_file``/``remove_file`` to keep the two maps consistent.
    """

    version: str = MAP_FORMAT_VERSION
    generated: str = field(default_factory=utc_now_iso)
    updated: str | None = None
    git: GitInfo | None = None
    project: ProjectInfo = field(default_factory=ProjectInfo)
    stats: MapStats = field(default_factory=MapStats)
    files: dict[str, FileRecord] = field(default_factory=dict)
    dependencies: dict[str, list[str]] = field(default_factory=dict)
    docs: Any = None

    def set_file(self, path: str, record: FileRecord) -> None:
        """Insert or replace a file record and its dependency entry."""
        self.files[path] = record
        sources = record.dependency_sources()
        if sources:
            self.dependencies[path] = sources
        else:
            self.dependencies.pop(path, None)

    def remove_file(self, path: str) -> bool:
        """Drop a file and its dependency entry. Returns True if it was indexed."""
        self.dependencies.pop(path, None)
        return self.files.pop(path, None) is not None

    def recalculate_stats(self) -> None:
        """Recompute file and symbol totals from ``files``."""
        self.stats.total_files = len(self.files)
        self.stats.total_symbols = sum(
            record.symbols.definition_count for record in self.files.values()
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "version": self.version,
            "generated": self.generated,
            "updated": self.updated,
            "git": self.git.to_dict() if self.git else None,
            "project": self.project.to_dict(),
            "stats": self.stats.to_dict(),
            "files": {path: record.to_dict() for path, record in self.files.items()},
            "dependencies": {path: list(deps) for path, deps in self.dependencies.items()},
        }
        if self.docs is not None:
            data["docs"] = self.docs
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoMap":
        """Create from dictionary.

        Raises:
            KeyError: If ``files`` is missing.
            ValueError: If a record carries an unknown symbol or import kind.
        """
        return cls(
            version=data.get("version", MAP_FORMAT_VERSION),
            generated=data.get("generated") or utc_now_iso(),
            updated=data.get("updated"),
            git=GitInfo.from_dict(data.get("git")),
            project=ProjectInfo.from_dict(data.get("project")),
            stats=MapStats.from_dict(data.get("stats")),
            files={
                path: FileRecord.from_dict(record)
                for path, record in data["files"].items()
            },
            dependencies={
                path: list(deps) for path, deps in (data.get("dependencies") or {}).items()
            },
            docs=data.get("docs"),
        )


@dataclass
class StalenessResult:
    """Derived staleness decision; never persisted."""

    is_stale: bool = False
    reason: str | None = None
    commits_behind: int = 0
    suggest_full_rebuild: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "isStale": self.is_stale,
            "reason": self.reason,
            "commitsBehind": self.commits_behind,
            "suggestFullRebuild": self.suggest_full_rebuild,
        }


@dataclass
class ChangeSummary:
    """Counts of what an update touched."""

    total: int = 0
    updated: int = 0
    added: int = 0
    deleted: int = 0
    renamed: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "updated": self.updated,
            "added": self.added,
            "deleted": self.deleted,
            "renamed": self.renamed,
        }


@dataclass
class UpdateResult:
    """Uniform result of every update entry point.

    Attributes:
        success: Whether the map was brought up to date
        map: The updated map (same object that was passed in, when valid)
        changes: What the update touched
        error: Human-readable failure reason
        needs_full_rebuild: The map cannot be reconciled incrementally
        history_unavailable: git could not be used; retry without history
        install_suggestion: How to install ast-grep, for tool failures
    """

    success: bool
    map: RepoMap | None = None
    changes: ChangeSummary = field(default_factory=ChangeSummary)
    error: str | None = None
    needs_full_rebuild: bool = False
    history_unavailable: bool = False
    install_suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization (map omitted)."""
        return {
            "success": self.success,
            "changes": self.changes.to_dict(),
            "error": self.error,
            "needsFullRebuild": self.needs_full_rebuild,
            "historyUnavailable": self.history_unavailable,
        }
