"""Shape raw ast-grep matches into symbols and import edges.

ast-grep reports each match as one JSON object per line (``--json=stream``)
with the matched ``text``, a 0-based ``range`` and the bound
``metaVariables``. Everything here is pure; the scanner owns the subprocess.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from .indexer_logging import get_logger
from .models import (
    SYMBOL_CATEGORIES,
    FileSymbols,
    ImportEdge,
    ImportKind,
    SymbolEntry,
    SymbolKind,
)
from .queries import MultiName, QueryPattern

logger = get_logger()

# Meta-variables tried after a pattern's own name variable
DEFAULT_NAME_VARS = ("NAME", "FUNC", "CLASS", "IDENT", "N")

# Default kind of each symbol category when a pattern carries none
CATEGORY_KINDS = {
    "exports": SymbolKind.EXPORT,
    "functions": SymbolKind.FUNCTION,
    "classes": SymbolKind.CLASS,
    "types": SymbolKind.TYPE,
    "constants": SymbolKind.CONSTANT,
}

_KEYWORD_NAME_RE = re.compile(
    r"(?:function|class|const|let|var|def|fn|pub\s+fn|type|struct|enum|trait|interface|record)"
    r"\s+([a-zA-Z_][a-zA-Z0-9_]*)"
)
_QUOTED_RE = re.compile(r"['\"]([^'\"]+)['\"]")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_EXPORT_LIST_RE = re.compile(r"\{([^}]+)\}")
_OBJECT_LITERAL_RE = re.compile(r"\{(.*?)\}", re.DOTALL)
_PROPERTY_RE = re.compile(r"([A-Za-z_$][A-Za-z0-9_$]*)\s*(?=,|:|$)")
_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)
_PYTHON_ALL_RE = re.compile(r"__all__\s*=\s*[\[(](.*?)[\])]", re.DOTALL)


def parse_ndjson(output: str | None) -> list[dict[str, Any]]:
    """Parse newline-delimited JSON, skipping malformed lines."""
    matches = []
    for line in (output or "").splitlines():
        if not line.strip():
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed ast-grep output line: {line[:80]}")
            continue
        if isinstance(value, dict):
            matches.append(value)
    return matches


def get_meta_variable(match: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Look up a bound meta-variable, flat or under ``single``."""
    meta = match.get("metaVariables") or {}
    if meta.get(key):
        return meta[key]
    single = meta.get("single") or {}
    return single.get(key) or None


def get_line(match: dict[str, Any]) -> int | None:
    """1-based start line of a match."""
    line = ((match.get("range") or {}).get("start") or {}).get("line")
    return line + 1 if isinstance(line, int) else None


def is_valid_identifier(name: str | None) -> bool:
    return bool(name) and bool(_IDENTIFIER_RE.match(name))


def extract_name(match: dict[str, Any], name_var: str | None = None) -> str | None:
    """Single symbol name from meta-variables, falling back to the match text."""
    keys = ([name_var] if name_var else []) + list(DEFAULT_NAME_VARS)
    for key in keys:
        variable = get_meta_variable(match, key)
        if variable and variable.get("text"):
            return variable["text"]

    text = match.get("text") or ""
    found = _KEYWORD_NAME_RE.search(text)
    return found.group(1) if found else None


def names_from_export_list(text: str) -> list[str]:
    """Exported names of ``export { a, b as c }``; aliases win."""
    found = _EXPORT_LIST_RE.search(text)
    if not found:
        return []

    names: dict[str, None] = {}
    for part in found.group(1).split(","):
        part = part.strip()
        if not part:
            continue
        pieces = [piece.strip() for piece in _ALIAS_RE.split(part)]
        name = re.sub(r"[^a-zA-Z0-9_$]", "", pieces[1] if len(pieces) > 1 else pieces[0])
        if is_valid_identifier(name):
            names[name] = None
    return list(names)


def names_from_object_literal(text: str) -> list[str]:
    """Property names of ``{ a, b: value }``."""
    found = _OBJECT_LITERAL_RE.search(text)
    if not found:
        return []

    names: dict[str, None] = {}
    for prop in _PROPERTY_RE.finditer(found.group(1).strip()):
        if is_valid_identifier(prop.group(1)):
            names[prop.group(1)] = None
    return list(names)


def extract_names(match: dict[str, Any], pattern: QueryPattern) -> list[str]:
    """All symbol names a match contributes under ``pattern``."""
    if pattern.multi is MultiName.EXPORT_LIST:
        return names_from_export_list(match.get("text") or "")
    if pattern.multi is MultiName.OBJECT_LITERAL:
        return names_from_object_literal(match.get("text") or "")

    name = extract_name(match, pattern.name_var)
    if name:
        return [name]
    if pattern.fallback_name:
        return [pattern.fallback_name]
    return []


def split_multi_source(raw: str) -> list[str]:
    """Split ``a, b as c`` into ``["a", "b"]``."""
    sources = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        name = _ALIAS_RE.split(part)[0].strip().strip("'\"")
        if name:
            sources.append(name)
    return sources


def extract_sources(match: dict[str, Any], pattern: QueryPattern) -> list[str]:
    """Import specifiers of a match, quotes stripped."""
    variable = get_meta_variable(match, pattern.source_var or "SOURCE")
    if variable and variable.get("text"):
        raw = re.sub(r"^['\"]|['\"]$", "", variable["text"])
        if pattern.multi_source:
            return split_multi_source(raw)
        return [raw] if raw else []

    found = _QUOTED_RE.search(match.get("text") or "")
    return [found.group(1)] if found else []


def extract_python_all(content: str) -> list[str]:
    """Names listed in a module-level ``__all__``."""
    if not content:
        return []
    found = _PYTHON_ALL_RE.search(content)
    if not found:
        return []
    return [name for name in _QUOTED_RE.findall(found.group(1)) if name]


def is_exported_go_name(name: str) -> bool:
    """Go exports identifiers starting with an upper-case letter."""
    if not name:
        return False
    first = name[0]
    return first.upper() == first and first.lower() != first


def _sort_key(entry: SymbolEntry) -> tuple[str, str]:
    return entry.name.lower(), entry.name


@dataclass
class SymbolCollector:
    """Accumulates matches for one file and builds its final symbol sets.

    The first match of a name within a category wins; imports are unique per
    ``(source, kind)``.
    """

    language: str
    symbols: dict[str, dict[str, SymbolEntry]] = field(
        default_factory=lambda: {category: {} for category in SYMBOL_CATEGORIES}
    )
    imports: list[ImportEdge] = field(default_factory=list)
    _seen_imports: set[tuple[str, ImportKind]] = field(default_factory=set)

    def add_match(self, category: str, match: dict[str, Any], pattern: QueryPattern) -> None:
        """Record a symbol match under ``category``."""
        target = self.symbols[category]
        kind = pattern.kind or CATEGORY_KINDS[category]
        line = get_line(match)
        for name in extract_names(match, pattern):
            if name not in target:
                target[name] = SymbolEntry(name=name, kind=kind, line=line)

    def add_import_match(self, match: dict[str, Any], pattern: QueryPattern) -> None:
        """Record an import match."""
        kind = pattern.import_kind or ImportKind.IMPORT
        line = get_line(match)
        for source in extract_sources(match, pattern):
            key = (source, kind)
            if key in self._seen_imports:
                continue
            self._seen_imports.add(key)
            self.imports.append(ImportEdge(source=source, kind=kind, line=line))

    def _definitions(self) -> list[dict[str, SymbolEntry]]:
        return [self.symbols[category] for category in SYMBOL_CATEGORIES if category != "exports"]

    def _export_names(self, content: str) -> set[str]:
        names = set(self.symbols["exports"])
        if self.language == "python":
            explicit = extract_python_all(content)
            if explicit:
                names.update(explicit)
            else:
                for definitions in self._definitions():
                    names.update(n for n in definitions if not n.startswith("_"))
        elif self.language == "go":
            for definitions in self._definitions():
                names.update(n for n in definitions if is_exported_go_name(n))
        return names

    def build(self, content: str) -> FileSymbols:
        """Apply export rules and return name-sorted symbol lists."""
        export_names = self._export_names(content)
        exports = self.symbols["exports"]

        # Inferred exports mirror the definition that introduced them
        for name in sorted(export_names):
            if name in exports:
                continue
            source = next((d[name] for d in self._definitions() if name in d), None)
            if source is not None:
                exports[name] = SymbolEntry(name=name, kind=source.kind, line=source.line)
            else:
                exports[name] = SymbolEntry(name=name, kind=SymbolKind.EXPORT)

        result = FileSymbols()
        for category in SYMBOL_CATEGORIES:
            entries = list(self.symbols[category].values())
            for entry in entries:
                entry.exported = category == "exports" or entry.name in export_names
            setattr(result, category, sorted(entries, key=_sort_key))
        return result
