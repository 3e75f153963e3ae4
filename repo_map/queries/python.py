"""Python query patterns for ast-grep.

Python has no export syntax; exports are inferred from ``__all__`` or the
leading-underscore convention after extraction.
"""

from ..models import ImportKind
from .base import LanguageQueries, imp, sym

QUERIES = LanguageQueries(
    functions=(
        sym("def $NAME($$$): $$$"),
        sym("async def $NAME($$$): $$$"),
    ),
    classes=(
        sym("class $NAME($$$): $$$"),
        sym("class $NAME: $$$"),
    ),
    imports=(
        imp("import $SOURCE", ImportKind.IMPORT, multi_source=True),
        imp("from $SOURCE import $NAME", ImportKind.FROM),
        imp("from $SOURCE import ($$$)", ImportKind.FROM),
    ),
)
