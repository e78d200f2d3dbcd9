"""
Import/export extraction for JavaScript and TypeScript sources.

Parses files with tree-sitter to build a ModuleSummary. When the grammar
cannot be loaded or the file does not parse cleanly, falls back to regex
scanning of the raw text.
"""
import logging
import re
from typing import List, Optional, Tuple

from tree_sitter import Node, Tree

from impactgraph.models import ExportRecord, ImportRecord, ModuleSummary
from impactgraph.tree_sitter_base import Dialect, TreeSitterParser, dialect_for_path

logger = logging.getLogger(__name__)

_LITERAL_TYPES = ("string", "template_string")

# Regex fallback patterns
_IMPORT_FROM_RE = re.compile(
    r"""\bimport\s+(?:type\s+)?"""
    r"""(\*\s+as\s+[\w$]+|[\w$]+(?:\s*,\s*(?:\{[^}]*\}|\*\s+as\s+[\w$]+))?|\{[^}]*\})"""
    r"""\s*from\s*['"]([^'"\n]+)['"]"""
)
_SIDE_EFFECT_IMPORT_RE = re.compile(r"""^[ \t]*import\s*['"]([^'"\n]+)['"]""", re.MULTILINE)
_EXPORT_FROM_RE = re.compile(
    r"""\bexport\s+(?:type\s+)?(\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*['"]([^'"\n]+)['"]"""
)
_DYNAMIC_IMPORT_RE = re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")
_EXPORT_DEFAULT_RE = re.compile(r"^[ \t]*export\s+default\b", re.MULTILINE)


class ModuleParser(TreeSitterParser):
    """Extracts imports and exports from a tree-sitter parse tree."""

    def __init__(self, dialect: Dialect):
        """Initialize module parser for one grammar dialect."""
        super().__init__(dialect)

    def _analyze_tree(self, tree: Tree) -> Tuple[List[ImportRecord], List[ExportRecord]]:
        """Collect import and export records in source order."""
        imports: List[ImportRecord] = []
        exports: List[ExportRecord] = []

        def visit(node: Node) -> bool:
            if node.type == "import_statement":
                self._handle_import_statement(node, imports)
                return False
            if node.type == "export_statement":
                self._handle_export_statement(node, imports, exports)
            elif node.type == "call_expression":
                self._handle_call(node, imports)
            return True

        self.traverse(tree.root_node, visit)
        return imports, exports

    def _handle_import_statement(self, node: Node, imports: List[ImportRecord]) -> None:
        """Handle import statements, including TypeScript `import x = require('y')`."""
        source_node = self.find_child_by_field(node, "source")
        require_clause = self.find_child_by_type(node, "import_require_clause")
        if source_node is None and require_clause is not None:
            source_node = (self.find_child_by_field(require_clause, "source")
                           or self.find_child_by_type(require_clause, "string"))

        specifier = self._literal_value(source_node)
        if specifier is None:
            return

        names: List[str] = []
        is_namespace = False

        if require_clause is not None:
            name_node = self.find_child_by_type(require_clause, "identifier")
            if name_node:
                names.append(self.get_node_text(name_node))

        import_clause = self.find_child_by_type(node, "import_clause")
        if import_clause:
            # Default import: import name from 'module'
            default_import = self.find_child_by_type(import_clause, "identifier")
            if default_import:
                names.append(self.get_node_text(default_import))

            # Namespace import: import * as name from 'module'
            namespace_import = self.find_child_by_type(import_clause, "namespace_import")
            if namespace_import:
                is_namespace = True
                name_node = self.find_child_by_type(namespace_import, "identifier")
                if name_node:
                    names.append(self.get_node_text(name_node))

            # Named imports: import { a, b as c } from 'module'
            named_imports = self.find_child_by_type(import_clause, "named_imports")
            if named_imports:
                for child in self.find_children_by_type(named_imports, "import_specifier"):
                    local = (self.find_child_by_field(child, "alias")
                             or self.find_child_by_field(child, "name"))
                    if local:
                        names.append(self.get_node_text(local))

        imports.append(ImportRecord(
            specifier=specifier,
            is_namespace=is_namespace,
            is_dynamic=False,
            names=tuple(names),
        ))

    def _handle_export_statement(
        self,
        node: Node,
        imports: List[ImportRecord],
        exports: List[ExportRecord],
    ) -> None:
        """Handle export statements. Re-exports also count as imports of their source."""
        source_node = self.find_child_by_field(node, "source")
        reexport_source = self._literal_value(source_node) if source_node else None

        is_default = self.find_child_by_type(node, "default") is not None
        is_namespace = (self.find_child_by_type(node, "*") is not None
                        or self.find_child_by_type(node, "namespace_export") is not None)
        names = self._export_names(node, is_default)

        exports.append(ExportRecord(
            reexport_source=reexport_source,
            is_namespace=is_namespace,
            is_default=is_default,
            names=names,
        ))

        if reexport_source is not None:
            imports.append(ImportRecord(
                specifier=reexport_source,
                is_namespace=is_namespace,
                is_dynamic=False,
                names=names,
            ))

    def _export_names(self, node: Node, is_default: bool) -> Tuple[str, ...]:
        """Names made visible by an export statement."""
        if is_default:
            return ("default",)

        names: List[str] = []
        namespace_export = self.find_child_by_type(node, "namespace_export")
        if namespace_export:
            for child in namespace_export.children:
                if child.type in ("identifier", "string"):
                    names.append(self.get_node_text(child).strip("'\""))

        export_clause = self.find_child_by_type(node, "export_clause")
        if export_clause:
            for child in self.find_children_by_type(export_clause, "export_specifier"):
                exported = (self.find_child_by_field(child, "alias")
                            or self.find_child_by_field(child, "name"))
                if exported:
                    names.append(self.get_node_text(exported).strip("'\""))

        declaration = self.find_child_by_field(node, "declaration")
        if declaration:
            name_node = self.find_child_by_field(declaration, "name")
            if name_node:
                names.append(self.get_node_text(name_node))
            else:
                for declarator in self.find_children_by_type(declaration, "variable_declarator"):
                    name_node = self.find_child_by_field(declarator, "name")
                    if name_node and name_node.type == "identifier":
                        names.append(self.get_node_text(name_node))

        return tuple(names)

    def _handle_call(self, node: Node, imports: List[ImportRecord]) -> None:
        """
        Handle call expressions.

        Each call falls in exactly one category: `import(...)` is dynamic,
        `require(...)` is static, anything else is ignored.
        """
        function_node = self.find_child_by_field(node, "function")
        if function_node is None:
            return

        if function_node.type == "import":
            is_dynamic = True
        elif function_node.type == "identifier" and self.get_node_text(function_node) == "require":
            is_dynamic = False
        else:
            return

        arguments = self.find_child_by_field(node, "arguments")
        if arguments is None:
            return

        # Skip magic comments such as import(/* webpackChunkName: "x" */ './x')
        values = [child for child in arguments.named_children if child.type != "comment"]
        if not values:
            return

        specifier = self._literal_value(values[0])
        if specifier is None:
            return

        imports.append(ImportRecord(specifier=specifier, is_dynamic=is_dynamic))

    def _literal_value(self, node: Optional[Node]) -> Optional[str]:
        """Return the contents of a string literal, or None for anything computed."""
        if node is None or node.type not in _LITERAL_TYPES:
            return None
        if node.type == "template_string" and self.find_child_by_type(node, "template_substitution"):
            return None

        text = self.get_node_text(node)
        if len(text) < 2:
            return None
        value = text[1:-1]
        return value or None


def parse_source(file_path: str, content: str) -> ModuleSummary:
    """
    Build a ModuleSummary from source text.

    Never raises: structural failures fall back to pattern scanning.

    Args:
        file_path: Absolute path of the file (selects the grammar)
        content: Decoded source text

    Returns:
        ModuleSummary for the file
    """
    try:
        parser = ModuleParser(dialect_for_path(file_path))
        tree = parser.parse_tree(content.encode("utf-8"))
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, falling back to pattern scan", file_path)
            return scan_with_patterns(file_path, content)
        imports, exports = parser._analyze_tree(tree)
    except Exception as e:
        logger.debug("tree-sitter failed for %s, falling back to pattern scan: %s", file_path, e)
        return scan_with_patterns(file_path, content)

    logger.debug("Parsed %s: %d imports, %d exports", file_path, len(imports), len(exports))
    return ModuleSummary(file_path=file_path, imports=tuple(imports), exports=tuple(exports))


def parse_file(file_path: str) -> ModuleSummary:
    """Read a file as UTF-8 and parse it. Unreadable files produce an empty summary."""
    try:
        with open(file_path, encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        logger.debug("Could not read %s: %s", file_path, e)
        return ModuleSummary(file_path=file_path)

    return parse_source(file_path, content)


def _in_line_comment(content: str, index: int) -> bool:
    """Cheap check for a match sitting behind `//` or on a `*` block-comment line."""
    line_start = content.rfind("\n", 0, index) + 1
    prefix = content[line_start:index]
    return "//" in prefix or prefix.strip().startswith("*")


def scan_with_patterns(file_path: str, content: str) -> ModuleSummary:
    """
    Regex-based extraction for files tree-sitter cannot handle.

    Finds static, side-effect, re-export, dynamic and require() imports plus
    default and re-export exports. Results are ordered by position in the text.
    """
    found: List[Tuple[int, ImportRecord]] = []
    exports: List[Tuple[int, ExportRecord]] = []

    for match in _IMPORT_FROM_RE.finditer(content):
        if _in_line_comment(content, match.start()):
            continue
        clause = match.group(1)
        found.append((match.start(), ImportRecord(
            specifier=match.group(2),
            is_namespace=clause.lstrip().startswith("*") or ", *" in clause or ",*" in clause,
        )))

    for match in _SIDE_EFFECT_IMPORT_RE.finditer(content):
        if _in_line_comment(content, match.start(1)):
            continue
        found.append((match.start(), ImportRecord(specifier=match.group(1))))

    for match in _EXPORT_FROM_RE.finditer(content):
        if _in_line_comment(content, match.start()):
            continue
        is_namespace = match.group(1).startswith("*")
        found.append((match.start(), ImportRecord(specifier=match.group(2), is_namespace=is_namespace)))
        exports.append((match.start(), ExportRecord(reexport_source=match.group(2), is_namespace=is_namespace)))

    for match in _DYNAMIC_IMPORT_RE.finditer(content):
        if _in_line_comment(content, match.start()):
            continue
        found.append((match.start(), ImportRecord(specifier=match.group(1), is_dynamic=True)))

    for match in _REQUIRE_RE.finditer(content):
        if _in_line_comment(content, match.start()):
            continue
        found.append((match.start(), ImportRecord(specifier=match.group(1))))

    for match in _EXPORT_DEFAULT_RE.finditer(content):
        exports.append((match.start(), ExportRecord(is_default=True, names=("default",))))

    found.sort(key=lambda item: item[0])
    exports.sort(key=lambda item: item[0])

    logger.debug("Pattern scan of %s: %d imports, %d exports", file_path, len(found), len(exports))
    return ModuleSummary(
        file_path=file_path,
        imports=tuple(record for _, record in found),
        exports=tuple(record for _, record in exports),
        used_fallback=True,
    )
