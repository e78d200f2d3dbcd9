"""Dependency graph builder and reachability queries."""
import logging
import math
import os
from collections import deque
from typing import Iterable, Mapping, Optional, Sequence

from impactgraph.models import DependencyGraph, GraphNode, ModuleSummary

logger = logging.getLogger(__name__)

DEFAULT_IMPACT_DEPTH = 3


class DependencyGraphBuilder:
    """Build a file-level dependency graph from module summaries."""

    def __init__(self, repo_root: str):
        self.repo_root = os.path.abspath(repo_root)

    def build(
        self,
        summaries: Iterable[ModuleSummary],
        resolved_targets: Mapping[str, Sequence[Optional[str]]],
    ) -> DependencyGraph:
        """
        Assemble the graph.

        Args:
            summaries: One summary per scanned file
            resolved_targets: File path -> resolver output for each of its
                imports (None for unresolved)

        Returns:
            DependencyGraph over exactly the summarised files
        """
        summaries = list(summaries)
        graph = DependencyGraph()

        # Step 1: one node per scanned file, edges or not
        for summary in summaries:
            graph.nodes[summary.file_path] = GraphNode(
                file_path=summary.file_path,
                relative_path=os.path.relpath(summary.file_path, self.repo_root),
            )
            graph.forward_edges[summary.file_path] = set()
            graph.reverse_edges[summary.file_path] = set()

        # Step 2: edges for targets inside the scanned set
        for summary in summaries:
            for target in resolved_targets.get(summary.file_path, ()):
                if target is None or target not in graph.nodes:
                    continue
                self._add_edge(graph, summary.file_path, target)

        logger.debug("Built dependency graph: %d nodes, %d edges", len(graph.nodes), graph.edge_count)
        return graph

    @staticmethod
    def _add_edge(graph: DependencyGraph, source: str, target: str) -> None:
        graph.forward_edges[source].add(target)
        graph.reverse_edges[target].add(source)
        graph.nodes[source].dependency_ids.add(target)
        graph.nodes[target].dependent_ids.add(source)


def build_dependency_graph(
    summaries: Iterable[ModuleSummary],
    resolved_targets: Mapping[str, Sequence[Optional[str]]],
    repo_root: str,
) -> DependencyGraph:
    return DependencyGraphBuilder(repo_root).build(summaries, resolved_targets)


def _reachable(start: str, adjacency: Mapping[str, set[str]], max_depth: float) -> set[str]:
    """
    Breadth-first search from start, up to max_depth hops.

    A node is expanded at most once, at the depth it was first discovered,
    which also makes the walk terminate on cycles. The start node is never
    part of the result.
    """
    visited = {start}
    reached: set[str] = set()
    queue = deque([(start, 0)])

    while queue:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue
        for neighbor in adjacency.get(current, ()):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            reached.add(neighbor)
            queue.append((neighbor, depth + 1))

    return reached


def get_dependencies(file_path: str, graph: DependencyGraph, max_depth: float = math.inf) -> set[str]:
    """Files `file_path` imports, directly or through up to max_depth hops."""
    return _reachable(file_path, graph.forward_edges, max_depth)


def get_dependents(file_path: str, graph: DependencyGraph, max_depth: float = math.inf) -> set[str]:
    """Files that import `file_path`, directly or through up to max_depth hops."""
    return _reachable(file_path, graph.reverse_edges, max_depth)


def compute_impacted_closure(
    changed_files: Iterable[str],
    graph: DependencyGraph,
    max_depth: float = DEFAULT_IMPACT_DEPTH,
) -> set[str]:
    """
    Changed files plus everything depending on them within max_depth hops.

    Changed files are always included, even when they are not in the graph.
    """
    changed_files = list(changed_files)
    impacted = set(changed_files)

    for file_path in changed_files:
        impacted |= get_dependents(file_path, graph, max_depth)

    logger.debug("Impacted closure: %d changed files -> %d total impacted", len(changed_files), len(impacted))
    return impacted


def export_graph(graph: DependencyGraph) -> dict[str, list[str]]:
    """Relative path -> relative paths of direct dependencies, for inspection only."""
    result = {}
    for node in sorted(graph.nodes.values(), key=lambda n: n.relative_path):
        result[node.relative_path] = sorted(
            graph.nodes[dep].relative_path if dep in graph.nodes else dep
            for dep in node.dependency_ids
        )
    return result
