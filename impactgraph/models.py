"""
Data models shared by the parser, resolver and graph layers.

File identities are absolute, normalised path strings throughout.
"""
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")


@dataclass(frozen=True)
class ImportRecord:
    """One import, re-export source or require() occurrence."""

    specifier: str
    is_namespace: bool = False
    is_dynamic: bool = False
    names: tuple[str, ...] = ()  # local bindings, informational only


@dataclass(frozen=True)
class ExportRecord:
    """One export statement."""

    reexport_source: Optional[str] = None
    is_namespace: bool = False
    is_default: bool = False
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class ModuleSummary:
    """Structural summary of a single source file."""

    file_path: str
    imports: tuple[ImportRecord, ...] = ()
    exports: tuple[ExportRecord, ...] = ()
    used_fallback: bool = False

    @property
    def specifiers(self) -> list[str]:
        return [imp.specifier for imp in self.imports]


@dataclass
class GraphNode:
    """A scanned file and its direct neighbours."""

    file_path: str
    relative_path: str
    dependency_ids: set[str] = field(default_factory=set)
    dependent_ids: set[str] = field(default_factory=set)


@dataclass
class DependencyGraph:
    """File-level import graph with mirrored forward and reverse adjacency."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    forward_edges: dict[str, set[str]] = field(default_factory=dict)  # importer -> {targets}
    reverse_edges: dict[str, set[str]] = field(default_factory=dict)  # target -> {importers}

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.forward_edges.values())


@dataclass(frozen=True)
class ResolverConfig:
    """
    Settings that drive import resolution.

    Attributes:
        base_dir: Directory alias templates are resolved against
        alias_table: Wildcard pattern -> ordered replacement templates
        extension_priority: Extensions probed in order when a path has no match
    """

    base_dir: str
    alias_table: dict[str, list[str]] = field(default_factory=dict)
    extension_priority: tuple[str, ...] = DEFAULT_EXTENSIONS
