"""TypeScript query patterns for ast-grep (JavaScript plus type syntax)."""

from ..models import ImportKind, SymbolKind
from . import javascript
from .base import LanguageQueries, imp, sym

QUERIES = LanguageQueries(
    exports=javascript.EXPORTS
    + (
        sym("export interface $NAME { $$$ }", SymbolKind.TYPE),
        sym("export type $NAME = $$$", SymbolKind.TYPE),
        sym("export enum $NAME { $$$ }", SymbolKind.TYPE),
        sym("export namespace $NAME { $$$ }", SymbolKind.TYPE),
        sym("export const enum $NAME { $$$ }", SymbolKind.TYPE),
        sym("export = $NAME", SymbolKind.VALUE),
        sym("export as namespace $NAME", SymbolKind.NAMESPACE),
    ),
    functions=javascript.FUNCTIONS,
    classes=javascript.CLASSES + (sym("abstract class $NAME { $$$ }"),),
    types=(
        sym("interface $NAME { $$$ }"),
        sym("type $NAME = $$$"),
        sym("enum $NAME { $$$ }"),
        sym("namespace $NAME { $$$ }"),
        sym("const enum $NAME { $$$ }"),
    ),
    imports=javascript.IMPORTS
    + (
        imp("import type { $$$ } from $SOURCE", ImportKind.TYPE),
        imp("import type $NAME from $SOURCE", ImportKind.TYPE),
    ),
)
