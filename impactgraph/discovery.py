"""Source file discovery."""
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from impactgraph.ignore import should_ignore
from impactgraph.tree_sitter_base import SOURCE_EXTENSIONS

logger = logging.getLogger(__name__)


def is_source_file(name: str) -> bool:
    return name.lower().endswith(SOURCE_EXTENSIONS)


def find_source_files(
    directory: Path,
    ignore_patterns: Iterable[str] = (),
    base_dir: Optional[Path] = None,
) -> List[str]:
    """
    Recursively find JavaScript/TypeScript files.

    Ignore patterns are matched against paths relative to base_dir (default:
    directory). A directory that cannot be read is skipped and logged; its
    siblings are still walked.

    Args:
        directory: Directory to walk
        ignore_patterns: Glob patterns from load_ignore_rules()
        base_dir: Root that ignore patterns are relative to

    Returns:
        Sorted absolute file paths
    """
    root = os.path.abspath(directory)
    base = os.path.abspath(base_dir) if base_dir else root
    patterns = list(ignore_patterns)
    files: List[str] = []

    pending = [root]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Failed to read directory %s: %s", current, e)
            continue

        for entry in entries:
            relative_path = os.path.relpath(entry.path, base).replace(os.sep, "/")
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file()
            except OSError as e:
                logger.debug("Failed to stat %s: %s", entry.path, e)
                continue

            if is_dir:
                if should_ignore(relative_path, patterns) or should_ignore(relative_path + "/", patterns):
                    continue
                pending.append(entry.path)
            elif is_file and is_source_file(entry.name):
                if should_ignore(relative_path, patterns):
                    continue
                files.append(os.path.normpath(entry.path))

    files.sort()
    logger.debug("Found %d source files under %s", len(files), root)
    return files
