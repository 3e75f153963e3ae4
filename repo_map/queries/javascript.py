"""JavaScript query patterns for ast-grep."""

from ..models import ImportKind, SymbolKind
from .base import LanguageQueries, MultiName, QueryPattern, imp, sym

EXPORTS = (
    sym("export function $NAME($$$) { $$$ }", SymbolKind.FUNCTION),
    sym("export async function $NAME($$$) { $$$ }", SymbolKind.FUNCTION),
    sym("export class $NAME { $$$ }", SymbolKind.CLASS),
    sym("export const $NAME = $$$", SymbolKind.CONSTANT),
    sym("export let $NAME = $$$", SymbolKind.VARIABLE),
    sym("export var $NAME = $$$", SymbolKind.VARIABLE),
    sym("export default function $NAME($$$) { $$$ }", SymbolKind.FUNCTION),
    sym("export default class $NAME { $$$ }", SymbolKind.CLASS),
    QueryPattern(
        "export default function ($$$) { $$$ }",
        kind=SymbolKind.FUNCTION,
        fallback_name="default",
    ),
    QueryPattern(
        "export default class { $$$ }", kind=SymbolKind.CLASS, fallback_name="default"
    ),
    sym("export default $NAME", SymbolKind.VALUE),
    QueryPattern("export { $$$ }", kind=SymbolKind.VALUE, multi=MultiName.EXPORT_LIST),
    QueryPattern(
        "export { $$$ } from $SOURCE",
        kind=SymbolKind.RE_EXPORT,
        multi=MultiName.EXPORT_LIST,
        source_var="SOURCE",
    ),
    QueryPattern(
        "export * from $SOURCE",
        kind=SymbolKind.RE_EXPORT,
        fallback_name="*",
        source_var="SOURCE",
    ),
    sym("module.exports = $NAME", SymbolKind.VALUE),
    QueryPattern(
        "module.exports = { $$$ }",
        kind=SymbolKind.VALUE,
        multi=MultiName.OBJECT_LITERAL,
    ),
    sym("exports.$NAME = $$$", SymbolKind.VALUE),
)

FUNCTIONS = (
    sym("function $NAME($$$) { $$$ }"),
    sym("async function $NAME($$$) { $$$ }"),
    sym("function* $NAME($$$) { $$$ }"),
    sym("async function* $NAME($$$) { $$$ }"),
    sym("const $NAME = ($$$) => $$$"),
    sym("const $NAME = async ($$$) => $$$"),
    sym("const $NAME = function ($$$) { $$$ }"),
    sym("const $NAME = async function ($$$) { $$$ }"),
    sym("let $NAME = ($$$) => $$$"),
    sym("var $NAME = ($$$) => $$$"),
)

CLASSES = (
    sym("class $NAME { $$$ }"),
    sym("const $NAME = class { $$$ }"),
    sym("const $NAME = class $CLASS { $$$ }"),
)

IMPORTS = (
    imp("import $NAME from $SOURCE", ImportKind.DEFAULT),
    imp("import * as $NAME from $SOURCE", ImportKind.NAMESPACE),
    imp("import { $$$ } from $SOURCE", ImportKind.NAMED),
    imp("import $SOURCE", ImportKind.SIDE_EFFECT),
    imp("const $NAME = require($SOURCE)", ImportKind.REQUIRE),
    imp("const { $$$ } = require($SOURCE)", ImportKind.REQUIRE),
    imp("require($SOURCE)", ImportKind.REQUIRE),
)

QUERIES = LanguageQueries(
    exports=EXPORTS,
    functions=FUNCTIONS,
    classes=CLASSES,
    imports=IMPORTS,
)
