"""
Command-line interface for impactgraph.

Provides commands for building the dependency graph, querying it, and
computing the impact of a change.
"""
import json
import logging
import math
import os
from pathlib import Path

import click

from impactgraph.config import ConfigError, ProjectConfig
from impactgraph.git_changes import GitChangesError, get_changed_files, get_working_tree_changes
from impactgraph.graph import compute_impacted_closure, export_graph, get_dependencies, get_dependents
from impactgraph.pipeline import build_project_graph

root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Repository root",
)


def _load_config(root: Path) -> ProjectConfig:
    try:
        return ProjectConfig.load(root)
    except ConfigError as e:
        raise click.ClickException(str(e))


def _echo_paths(paths, root: Path) -> None:
    for path in sorted(os.path.relpath(p, root) for p in paths):
        click.echo(path)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def main(verbose):
    """impactgraph - dependency graph and change-impact analysis for JS/TS code."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON to a file")
def graph(directory: Path, output):
    """
    Build the dependency graph of a directory.

    Prints each file with its direct dependencies, as JSON.
    """
    root = directory.resolve()
    dependency_graph = build_project_graph(root, _load_config(root))
    exported = json.dumps(export_graph(dependency_graph), indent=2)

    if output:
        output.write_text(exported + "\n", encoding="utf-8")
        click.echo(f"✓ Wrote {len(dependency_graph.nodes)} nodes, "
                   f"{dependency_graph.edge_count} edges to {output}")
    else:
        click.echo(exported)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--depth", type=click.IntRange(min=0), help="Maximum hops (default: unlimited)")
@root_option
def deps(file: Path, depth, root: Path):
    """List the files FILE depends on."""
    root = root.resolve()
    dependency_graph = build_project_graph(root, _load_config(root))
    max_depth = math.inf if depth is None else depth
    _echo_paths(get_dependencies(str(file.resolve()), dependency_graph, max_depth), root)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--depth", type=click.IntRange(min=0), help="Maximum hops (default: unlimited)")
@root_option
def dependents(file: Path, depth, root: Path):
    """List the files that depend on FILE."""
    root = root.resolve()
    dependency_graph = build_project_graph(root, _load_config(root))
    max_depth = math.inf if depth is None else depth
    _echo_paths(get_dependents(str(file.resolve()), dependency_graph, max_depth), root)


@main.command()
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
@click.option("--since", "since_ref", help="Use files changed since this Git ref")
@click.option("--to", "to_ref", default="HEAD", show_default=True, help="Head ref for --since")
@click.option("--depth", type=click.IntRange(min=0), help="Maximum hops (default: from config, 3)")
@click.option("--json", "as_json", is_flag=True, help="Print a JSON object instead of plain paths")
@root_option
def impact(files, since_ref, to_ref, depth, as_json, root: Path):
    """
    Compute the impacted closure of a change.

    Starts from FILES, from the files changed since --since, or from the
    uncommitted changes in the working tree when neither is given.
    """
    root = root.resolve()
    project_config = _load_config(root)

    try:
        if files:
            changed = [str(f.resolve()) for f in files]
        elif since_ref:
            changed = [os.path.realpath(p) for p in get_changed_files(root, since_ref, to_ref)]
        else:
            changed = [os.path.realpath(p) for p in get_working_tree_changes(root)]
    except GitChangesError as e:
        raise click.ClickException(str(e))

    if not changed:
        click.echo("No changed files.", err=True)
        return

    dependency_graph = build_project_graph(root, project_config)
    max_depth = project_config.max_depth if depth is None else depth
    impacted = compute_impacted_closure(changed, dependency_graph, max_depth)

    if as_json:
        click.echo(json.dumps({
            "changed": sorted(os.path.relpath(p, root) for p in changed),
            "impacted": sorted(os.path.relpath(p, root) for p in impacted),
            "max_depth": max_depth,
        }, indent=2))
    else:
        _echo_paths(impacted, root)


if __name__ == "__main__":
    main()
