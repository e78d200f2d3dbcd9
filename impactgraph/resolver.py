"""
Import specifier resolution.

Maps a raw specifier written in a source file to the absolute path of the
file it refers to, probing extensions and index files and expanding path
aliases. Anything that cannot be mapped (typically an npm package) is
reported as unresolved (None).
"""
import logging
import os
import re
from typing import Optional

from impactgraph.models import ResolverConfig

logger = logging.getLogger(__name__)

_RELATIVE_PREFIXES = ("./", "../")


def is_relative_specifier(specifier: str) -> bool:
    """True for `./x`, `../x`, `.`, `..` and absolute paths."""
    return (specifier.startswith(_RELATIVE_PREFIXES)
            or specifier in (".", "..")
            or os.path.isabs(specifier))


def resolve_import(specifier: str, importing_file: str, config: ResolverConfig) -> Optional[str]:
    """
    Resolve an import specifier to an absolute file path.

    Args:
        specifier: Module reference as written in source (e.g. './utils', '@app/x', 'lodash')
        importing_file: Absolute path of the file containing the import
        config: Resolution settings

    Returns:
        Absolute path of the target file, or None if unresolved
    """
    if is_relative_specifier(specifier):
        candidate = os.path.normpath(os.path.join(os.path.dirname(importing_file), specifier))
        resolved = _resolve_candidate(candidate, config.extension_priority)
        if resolved is None:
            logger.debug("Could not resolve %s from %s", specifier, importing_file)
        return resolved

    resolved = _resolve_alias(specifier, config)
    if resolved is None:
        logger.debug("Skipping external module: %s", specifier)
    return resolved


def _match_alias(pattern: str, specifier: str) -> Optional[str]:
    """Return the text captured by the pattern's `*`, or None if it does not match."""
    if "*" not in pattern:
        return "" if pattern == specifier else None

    prefix, _, suffix = pattern.partition("*")
    regex = "^" + re.escape(prefix) + "(.*)" + re.escape(suffix) + "$"
    match = re.match(regex, specifier, re.DOTALL)
    return match.group(1) if match else None


def _resolve_alias(specifier: str, config: ResolverConfig) -> Optional[str]:
    """
    Expand a specifier through the alias table.

    Patterns and their templates are tried in order. Each expansion is
    resolved once against the filesystem and never re-expanded.
    """
    for pattern, templates in config.alias_table.items():
        captured = _match_alias(pattern, specifier)
        if captured is None:
            continue

        for template in templates:
            candidate = os.path.normpath(os.path.join(config.base_dir, template.replace("*", captured, 1)))
            resolved = _resolve_candidate(candidate, config.extension_priority)
            if resolved:
                logger.debug("Resolved alias %s via %s -> %s", specifier, pattern, resolved)
                return resolved

    return None


def _resolve_candidate(candidate: str, extensions: tuple[str, ...]) -> Optional[str]:
    """Probe the filesystem for a candidate base path."""
    # Exact file
    if os.path.isfile(candidate):
        return candidate

    # Directory: try index files
    if os.path.isdir(candidate):
        for ext in extensions:
            index_path = os.path.join(candidate, f"index{ext}")
            if os.path.isfile(index_path):
                return index_path

    # Try adding extensions
    for ext in extensions:
        if candidate.endswith(ext):
            continue
        with_ext = f"{candidate}{ext}"
        if os.path.isfile(with_ext):
            return with_ext

    return None
