"""
Ignore rules for source discovery.

Combines built-in patterns, .gitignore entries and user configuration into a
single list of glob patterns matched against repository-relative paths.
"""
import functools
import logging
import re
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS = [
    "node_modules/**",
    "dist/**",
    "build/**",
    "out/**",
    "coverage/**",
    ".next/**",
    ".nuxt/**",
    ".cache/**",
    ".turbo/**",
    ".vercel/**",
    ".netlify/**",
    "**/*.min.js",
    "**/*.min.css",
    "**/*.bundle.js",
    "**/.git/**",
    "**/.svn/**",
    "**/.hg/**",
]


def parse_gitignore(repo_root: Path) -> List[str]:
    """
    Convert .gitignore entries into glob patterns.

    Negations are not supported and are skipped.
    """
    gitignore_path = Path(repo_root) / ".gitignore"
    try:
        content = gitignore_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.debug("Failed to read .gitignore: %s", e)
        return []

    patterns = []
    for line in content.splitlines():
        pattern = line.strip()
        if not pattern or pattern.startswith("#") or pattern.startswith("!"):
            continue

        # Leading slash anchors the pattern to the root
        if pattern.startswith("/"):
            pattern = pattern[1:]
        # No slash: match at any depth
        elif "/" not in pattern.rstrip("/"):
            pattern = f"**/{pattern}"

        # Directory: match its contents
        if pattern.endswith("/"):
            pattern = f"{pattern}**"
        elif "**" not in pattern and not pattern.endswith("*"):
            pattern = f"{pattern}/**"

        patterns.append(pattern)

    logger.debug("Loaded %d patterns from .gitignore", len(patterns))
    return patterns


def load_ignore_rules(repo_root: Path, extra_patterns: Iterable[str] = ()) -> List[str]:
    """Defaults, then .gitignore, then configured patterns, without duplicates."""
    combined = [*DEFAULT_IGNORE_PATTERNS, *parse_gitignore(repo_root), *extra_patterns]
    unique = list(dict.fromkeys(combined))
    logger.debug("Total ignore patterns: %d", len(unique))
    return unique


@functools.lru_cache(maxsize=1024)
def _glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a glob. `**` crosses directories, `*` and `?` stay within one segment.

    `**/` also matches zero directories, so `**/x` matches a top-level `x`.
    """
    normalized = pattern.replace("\\", "/")
    parts = []
    i = 0
    while i < len(normalized):
        if normalized.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif normalized.startswith("**", i):
            parts.append(".*")
            i += 2
        elif normalized[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif normalized[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(normalized[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def matches_glob(path: str, pattern: str) -> bool:
    return _glob_to_regex(pattern).match(path.replace("\\", "/")) is not None


def should_ignore(relative_path: str, patterns: Iterable[str]) -> bool:
    """Check if a repository-relative path matches any ignore pattern."""
    return any(matches_glob(relative_path, pattern) for pattern in patterns)
