"""Pattern definitions shared by all language query tables."""

from dataclasses import dataclass, field
from enum import Enum

from ..models import ImportKind, SymbolKind


class MultiName(str, Enum):
    """How to pull several names out of one match."""

    EXPORT_LIST = "export_list"
    OBJECT_LITERAL = "object_literal"


@dataclass(frozen=True)
class QueryPattern:
    """One ast-grep structural pattern.

    Attributes:
        pattern: ast-grep pattern source
        kind: Symbol kind override (symbol patterns); category default otherwise
        import_kind: Import style (import patterns)
        name_var: Preferred meta-variable holding the symbol name
        source_var: Meta-variable holding the import specifier
        multi: Extract several names from the matched text
        fallback_name: Name to use when the pattern binds none
        multi_source: Split comma-separated import sources
    """

    pattern: str
    kind: SymbolKind | None = None
    import_kind: ImportKind | None = None
    name_var: str | None = None
    source_var: str | None = None
    multi: MultiName | None = None
    fallback_name: str | None = None
    multi_source: bool = False


@dataclass(frozen=True)
class LanguageQueries:
    """All patterns for one language."""

    exports: tuple[QueryPattern, ...] = field(default_factory=tuple)
    functions: tuple[QueryPattern, ...] = field(default_factory=tuple)
    classes: tuple[QueryPattern, ...] = field(default_factory=tuple)
    types: tuple[QueryPattern, ...] = field(default_factory=tuple)
    constants: tuple[QueryPattern, ...] = field(default_factory=tuple)
    imports: tuple[QueryPattern, ...] = field(default_factory=tuple)


def sym(pattern: str, kind: SymbolKind | None = None, **kwargs) -> QueryPattern:
    """Symbol pattern binding ``$NAME``."""
    kwargs.setdefault("name_var", "NAME")
    return QueryPattern(pattern=pattern, kind=kind, **kwargs)


def imp(pattern: str, kind: ImportKind, **kwargs) -> QueryPattern:
    """Import pattern binding ``$SOURCE``."""
    return QueryPattern(pattern=pattern, import_kind=kind, source_var="SOURCE", **kwargs)
