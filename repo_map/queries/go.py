"""Go query patterns for ast-grep.

Go exports are inferred from capitalization after extraction.
"""

from ..models import ImportKind
from .base import LanguageQueries, imp, sym

QUERIES = LanguageQueries(
    functions=(
        sym("func $NAME($$$) { $$$ }"),
        sym("func ($$$) $NAME($$$) { $$$ }"),
    ),
    types=(
        sym("type $NAME struct { $$$ }"),
        sym("type $NAME interface { $$$ }"),
        sym("type $NAME = $$$"),
    ),
    constants=(
        sym("const $NAME = $$$"),
        sym("const $NAME $TYPE = $$$"),
    ),
    imports=(
        imp("import $SOURCE", ImportKind.IMPORT),
        imp("import $NAME $SOURCE", ImportKind.IMPORT),
    ),
)
