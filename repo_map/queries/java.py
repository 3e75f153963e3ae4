"""Java query patterns for ast-grep."""

from ..models import ImportKind, SymbolKind
from .base import LanguageQueries, imp, sym

QUERIES = LanguageQueries(
    exports=(
        sym("public class $NAME { $$$ }", SymbolKind.CLASS),
        sym("public interface $NAME { $$$ }", SymbolKind.CLASS),
        sym("public enum $NAME { $$$ }", SymbolKind.CLASS),
        sym("public record $NAME($$$) { $$$ }", SymbolKind.CLASS),
        sym("public $RET $NAME($$$) { $$$ }", SymbolKind.FUNCTION),
        sym("public static $RET $NAME($$$) { $$$ }", SymbolKind.FUNCTION),
        sym("public $RET $NAME($$$);", SymbolKind.FUNCTION),
    ),
    functions=(
        sym("public $RET $NAME($$$) { $$$ }"),
        sym("public static $RET $NAME($$$) { $$$ }"),
        sym("protected $RET $NAME($$$) { $$$ }"),
        sym("private $RET $NAME($$$) { $$$ }"),
    ),
    classes=(
        sym("class $NAME { $$$ }"),
        sym("interface $NAME { $$$ }"),
        sym("enum $NAME { $$$ }"),
        sym("record $NAME($$$) { $$$ }"),
    ),
    constants=(
        sym("public static final $TYPE $NAME = $$$;"),
        sym("static final $TYPE $NAME = $$$;"),
    ),
    imports=(
        imp("import $SOURCE;", ImportKind.IMPORT),
        imp("import static $SOURCE;", ImportKind.IMPORT),
    ),
)
