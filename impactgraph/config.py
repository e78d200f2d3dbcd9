"""
Configuration loading.

Reads resolver settings from tsconfig.json and project settings from an
optional .impactgraph.yml file.
"""
import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from impactgraph.graph import DEFAULT_IMPACT_DEPTH
from impactgraph.models import DEFAULT_EXTENSIONS, ResolverConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".impactgraph.yml"
DEFAULT_WORKERS = 8

# Strings are matched first so that "//" or "/*" inside them survive
_JSONC_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|/\*.*?\*/|//[^\n]*', re.DOTALL)
_JSONC_TRAILING_COMMA_RE = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


class ConfigError(ValueError):
    """Raised for invalid values in .impactgraph.yml."""


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments and trailing commas from JSON-with-comments."""
    text = _JSONC_COMMENT_RE.sub(lambda m: m.group(1) or "", text)
    return _JSONC_TRAILING_COMMA_RE.sub(lambda m: m.group(1) or m.group(2), text)


def load_tsconfig(repo_root: Path) -> ResolverConfig:
    """
    Load tsconfig.json and extract compiler options for path resolution.

    A missing or malformed file yields a config with no aliases and the
    repository root as base directory.
    """
    root = os.path.abspath(repo_root)
    tsconfig_path = os.path.join(root, "tsconfig.json")

    try:
        with open(tsconfig_path, encoding="utf-8") as f:
            tsconfig = json.loads(strip_json_comments(f.read()))
    except FileNotFoundError:
        logger.debug("No tsconfig.json in %s", root)
        return ResolverConfig(base_dir=root)
    except (OSError, ValueError) as e:
        logger.debug("Could not load tsconfig.json: %s", e)
        return ResolverConfig(base_dir=root)

    compiler_options = tsconfig.get("compilerOptions") if isinstance(tsconfig, dict) else None
    if not isinstance(compiler_options, dict):
        compiler_options = {}

    base_url = compiler_options.get("baseUrl")
    base_dir = os.path.normpath(os.path.join(root, base_url)) if isinstance(base_url, str) and base_url else root

    paths = compiler_options.get("paths")
    if not isinstance(paths, dict):
        paths = {}
    alias_table = {
        pattern: [str(t) for t in targets]
        for pattern, targets in paths.items()
        if isinstance(targets, list)
    }

    logger.debug("Loaded tsconfig.json: baseUrl=%s, %d path aliases", base_dir, len(alias_table))
    return ResolverConfig(base_dir=base_dir, alias_table=alias_table)


@dataclass
class ProjectConfig:
    """Settings for a repository, from .impactgraph.yml."""

    ignore: list[str] = field(default_factory=list)
    max_depth: int = DEFAULT_IMPACT_DEPTH
    extensions: Optional[list[str]] = None
    aliases: dict[str, list[str]] = field(default_factory=dict)
    workers: int = DEFAULT_WORKERS

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ProjectConfig":
        """
        Load project settings from a YAML file.

        Args:
            yaml_path: Path to .impactgraph.yml file

        Returns:
            ProjectConfig instance

        Example YAML:
            ignore:
              - "legacy/**"
              - "**/*.stories.tsx"
            max_depth: 4
            extensions: [".ts", ".tsx", ".js"]
            aliases:
              "@app/*": ["src/*"]
            workers: 16
        """
        with open(yaml_path, encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if config is None:
            return cls()
        if not isinstance(config, dict):
            raise ConfigError(f"{yaml_path} must contain a mapping")

        settings = cls()

        if "ignore" in config:
            settings.ignore = _string_list(config["ignore"], "ignore")

        if "max_depth" in config:
            settings.max_depth = _positive_int(config["max_depth"], "max_depth", allow_zero=True)

        if "extensions" in config:
            extensions = _string_list(config["extensions"], "extensions")
            settings.extensions = [ext if ext.startswith(".") else f".{ext}" for ext in extensions]

        if "aliases" in config:
            aliases = config["aliases"]
            if not isinstance(aliases, dict):
                raise ConfigError("aliases must be a mapping of pattern -> list of paths")
            settings.aliases = {
                str(pattern): _string_list(targets, f"aliases[{pattern}]")
                for pattern, targets in aliases.items()
            }

        if "workers" in config:
            settings.workers = _positive_int(config["workers"], "workers")

        return settings

    @classmethod
    def load(cls, repo_root: Path) -> "ProjectConfig":
        """Load .impactgraph.yml from the repository root, or defaults if absent."""
        yaml_path = Path(repo_root) / CONFIG_FILENAME
        if not yaml_path.is_file():
            logger.debug("No %s found, using defaults", CONFIG_FILENAME)
            return cls()
        logger.debug("Loading %s", yaml_path)
        return cls.from_yaml(yaml_path)

    def resolver_config(self, repo_root: Path) -> ResolverConfig:
        """tsconfig.json settings with this config's aliases and extensions layered on top."""
        base = load_tsconfig(repo_root)
        alias_table = {**base.alias_table, **self.aliases}
        extensions = tuple(self.extensions) if self.extensions else DEFAULT_EXTENSIONS
        return ResolverConfig(base_dir=base.base_dir, alias_table=alias_table, extension_priority=extensions)


def _string_list(value: Any, name: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings")
    return list(value)


def _positive_int(value: Any, name: str, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{name} must be {'non-negative' if allow_zero else 'positive'}")
    return value
