"""Rust query patterns for ast-grep."""

from ..models import ImportKind, SymbolKind
from .base import LanguageQueries, QueryPattern, imp, sym

VISIBILITIES = ("pub", "pub(crate)", "pub(super)", "pub(in $PATH)")

# (item template, kind); {vis} is replaced by each visibility
_PUBLIC_ITEMS = (
    ("{vis} fn $NAME($$$) {{ $$$ }}", SymbolKind.FUNCTION),
    ("{vis} struct $NAME {{ $$$ }}", SymbolKind.TYPE),
    ("{vis} enum $NAME {{ $$$ }}", SymbolKind.TYPE),
    ("{vis} trait $NAME {{ $$$ }}", SymbolKind.TYPE),
    ("{vis} type $NAME = $$$", SymbolKind.TYPE),
    ("{vis} const $NAME: $TYPE = $$$", SymbolKind.CONSTANT),
    ("{vis} static $NAME: $TYPE = $$$", SymbolKind.CONSTANT),
    ("{vis} mod $NAME {{ $$$ }}", SymbolKind.MODULE),
)


def _public_exports() -> tuple[QueryPattern, ...]:
    patterns = [
        sym(template.format(vis=vis), kind)
        for template, kind in _PUBLIC_ITEMS
        for vis in VISIBILITIES
    ]
    patterns.append(sym("pub mod $NAME;", SymbolKind.MODULE))
    return tuple(patterns)


QUERIES = LanguageQueries(
    exports=_public_exports(),
    functions=(
        sym("fn $NAME($$$) { $$$ }"),
        sym("async fn $NAME($$$) { $$$ }"),
        sym("pub fn $NAME($$$) { $$$ }"),
        sym("pub(crate) fn $NAME($$$) { $$$ }"),
        sym("pub(super) fn $NAME($$$) { $$$ }"),
        sym("pub(in $PATH) fn $NAME($$$) { $$$ }"),
        sym("pub async fn $NAME($$$) { $$$ }"),
        sym("pub(crate) async fn $NAME($$$) { $$$ }"),
    ),
    types=(
        sym("struct $NAME { $$$ }"),
        sym("enum $NAME { $$$ }"),
        sym("trait $NAME { $$$ }"),
        sym("type $NAME = $$$"),
        sym("pub struct $NAME { $$$ }"),
        sym("pub enum $NAME { $$$ }"),
        sym("pub trait $NAME { $$$ }"),
        sym("pub type $NAME = $$$"),
    ),
    constants=(
        sym("const $NAME: $TYPE = $$$"),
        sym("static $NAME: $TYPE = $$$"),
    ),
    imports=(
        imp("use $SOURCE;", ImportKind.USE),
        imp("use $SOURCE::{ $$$ };", ImportKind.USE),
        imp("use $SOURCE::*;", ImportKind.USE),
    ),
)
