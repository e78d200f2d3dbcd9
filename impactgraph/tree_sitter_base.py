"""
Base tree-sitter support for JavaScript/TypeScript structural parsing.

Provides common functionality for tree-sitter-based extraction including:
- Dialect selection by file extension
- One-time, resettable grammar loading
- Common node traversal utilities
"""
import enum
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

try:
    from tree_sitter import Language, Parser, Node, Tree
    import tree_sitter_javascript
    import tree_sitter_typescript
except ImportError:
    raise ImportError(
        "tree-sitter is not installed. Please install it with: "
        "pip install tree-sitter tree-sitter-javascript tree-sitter-typescript"
    )

logger = logging.getLogger(__name__)


class Dialect(enum.Enum):
    """Grammar variant used to parse a file."""

    SCRIPT = "javascript"
    TYPED = "typescript"
    TYPED_JSX = "tsx"


DIALECT_BY_EXTENSION = {
    ".js": Dialect.SCRIPT,
    ".jsx": Dialect.SCRIPT,
    ".mjs": Dialect.SCRIPT,
    ".cjs": Dialect.SCRIPT,
    ".ts": Dialect.TYPED,
    ".mts": Dialect.TYPED,
    ".cts": Dialect.TYPED,
    ".tsx": Dialect.TYPED_JSX,
}

SOURCE_EXTENSIONS = tuple(DIALECT_BY_EXTENSION)


def dialect_for_path(file_path: str) -> Dialect:
    """Pick the grammar for a file; unknown extensions are parsed as TypeScript."""
    extension = os.path.splitext(file_path)[1].lower()
    return DIALECT_BY_EXTENSION.get(extension, Dialect.TYPED)


# Process-wide grammar state, guarded by ensure_ready()
_languages: dict[Dialect, Language] = {}
_ready = False
_ready_lock = threading.Lock()


def ensure_ready() -> None:
    """Load all grammars once. Safe to call repeatedly and from several threads."""
    global _ready
    if _ready:
        return
    with _ready_lock:
        if _ready:
            return
        _languages[Dialect.SCRIPT] = Language(tree_sitter_javascript.language())
        _languages[Dialect.TYPED] = Language(tree_sitter_typescript.language_typescript())
        _languages[Dialect.TYPED_JSX] = Language(tree_sitter_typescript.language_tsx())
        _ready = True
        logger.debug("Loaded tree-sitter grammars: %s", ", ".join(d.value for d in _languages))


def is_ready() -> bool:
    return _ready


def reset() -> None:
    """Forget loaded grammars so the next ensure_ready() reloads them."""
    global _ready
    with _ready_lock:
        _languages.clear()
        _ready = False


def get_language(dialect: Dialect) -> Language:
    ensure_ready()
    return _languages[dialect]


class TreeSitterParser(ABC):
    """Base class for tree-sitter-based extractors."""

    def __init__(self, dialect: Dialect):
        """
        Initialize tree-sitter parser.

        Args:
            dialect: Grammar variant to parse with
        """
        self.dialect = dialect

    def parse_tree(self, source: bytes) -> Tree:
        """
        Parse source bytes into a syntax tree.

        A fresh Parser is created per call; Parser objects are not shared
        between threads.
        """
        parser = Parser(get_language(self.dialect))
        return parser.parse(source)

    @abstractmethod
    def _analyze_tree(self, tree: Tree):
        """
        Analyze a tree-sitter parse tree and extract structural information.

        Must be implemented by subclasses.

        Args:
            tree: Tree-sitter parse tree
        """
        pass

    # Helper methods for extracting information from tree-sitter nodes

    def get_node_text(self, node: Node) -> str:
        """Extract text content from a node."""
        return node.text.decode("utf-8", errors="replace")

    def find_child_by_type(self, node: Node, child_type: str) -> Optional[Node]:
        """Find first child node of a specific type."""
        for child in node.children:
            if child.type == child_type:
                return child
        return None

    def find_children_by_type(self, node: Node, child_type: str) -> List[Node]:
        """Find all child nodes of a specific type."""
        return [child for child in node.children if child.type == child_type]

    def find_child_by_field(self, node: Node, field_name: str) -> Optional[Node]:
        """Find child node by field name."""
        return node.child_by_field_name(field_name)

    def traverse(self, node: Node, visit_func: Callable[[Node], bool]) -> None:
        """
        Walk nodes depth-first in source order.

        Uses an explicit stack so deeply nested (e.g. minified) code cannot
        exhaust the interpreter's recursion limit.

        Args:
            node: Root of the walk
            visit_func: Callback function(node) -> bool
                       Return True to continue into the node's children
        """
        stack = [node]
        while stack:
            current = stack.pop()
            if visit_func(current):
                stack.extend(reversed(current.children))
