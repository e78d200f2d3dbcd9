"""
End-to-end graph construction.

discover -> parse -> resolve (concurrently, per file) -> build (single pass).
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from impactgraph.config import DEFAULT_WORKERS, ProjectConfig, load_tsconfig
from impactgraph.discovery import find_source_files
from impactgraph.graph import build_dependency_graph
from impactgraph.ignore import load_ignore_rules
from impactgraph.models import DependencyGraph, ModuleSummary, ResolverConfig
from impactgraph.parser import parse_file
from impactgraph.resolver import resolve_import

logger = logging.getLogger(__name__)


def analyze_file(file_path: str, config: ResolverConfig) -> Tuple[ModuleSummary, List[Optional[str]]]:
    """Parse one file and resolve each of its imports."""
    summary = parse_file(file_path)
    targets = [resolve_import(imp.specifier, file_path, config) for imp in summary.imports]
    return summary, targets


def build_graph_for_files(
    files: Iterable[str],
    repo_root: Path,
    resolver_config: ResolverConfig,
    max_workers: int = DEFAULT_WORKERS,
) -> DependencyGraph:
    """
    Build a graph over an explicit file list.

    Per-file work runs on a bounded thread pool; the graph is assembled only
    after every file is done, in sorted path order.
    """
    files = sorted({os.path.abspath(f) for f in files})
    results = {}
    errors = 0

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {executor.submit(analyze_file, f, resolver_config): f for f in files}
        for future in as_completed(futures):
            file_path = futures[future]
            try:
                results[file_path] = future.result()
            except Exception as e:
                logger.warning("Failed to analyze %s: %s", file_path, e)
                results[file_path] = (ModuleSummary(file_path=file_path), [])
                errors += 1

    summaries = [results[f][0] for f in files]
    resolved_targets = {f: results[f][1] for f in files}

    logger.debug("Analyzed %d files (%d errors)", len(files), errors)
    return build_dependency_graph(summaries, resolved_targets, str(repo_root))


def build_graph_for_directory(
    directory: Path,
    ignore_patterns: Iterable[str] = (),
    repo_root: Optional[Path] = None,
    resolver_config: Optional[ResolverConfig] = None,
    max_workers: int = DEFAULT_WORKERS,
) -> DependencyGraph:
    """
    Build a dependency graph for all JavaScript/TypeScript files in a directory.

    Args:
        directory: Directory to scan
        ignore_patterns: Glob patterns relative to repo_root
        repo_root: Repository root (default: directory)
        resolver_config: Resolution settings (default: from tsconfig.json)
        max_workers: Size of the parse/resolve thread pool

    Returns:
        DependencyGraph over the discovered files
    """
    root = os.path.abspath(repo_root or directory)
    logger.info("Building dependency graph for %s", directory)

    if resolver_config is None:
        resolver_config = load_tsconfig(root)

    files = find_source_files(directory, ignore_patterns, base_dir=root)
    graph = build_graph_for_files(files, root, resolver_config, max_workers)

    logger.info("Dependency graph built: %d nodes, %d edges", len(graph.nodes), graph.edge_count)
    return graph


def build_project_graph(repo_root: Path, project_config: Optional[ProjectConfig] = None) -> DependencyGraph:
    """Build the graph for a repository using its .impactgraph.yml, .gitignore and tsconfig.json."""
    if project_config is None:
        project_config = ProjectConfig.load(repo_root)

    return build_graph_for_directory(
        repo_root,
        ignore_patterns=load_ignore_rules(repo_root, project_config.ignore),
        repo_root=repo_root,
        resolver_config=project_config.resolver_config(repo_root),
        max_workers=project_config.workers,
    )
