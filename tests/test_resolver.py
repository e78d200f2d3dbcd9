"""Tests for import specifier resolution."""
import os

import pytest

from impactgraph import resolver as resolver_module
from impactgraph.models import DEFAULT_EXTENSIONS, ResolverConfig
from impactgraph.resolver import is_relative_specifier, resolve_import


@pytest.fixture
def config(temp_dir):
    return ResolverConfig(base_dir=str(temp_dir))


def importer(root, relative="a.ts"):
    return str(root / relative)


class TestRelativeResolution:
    """Relative and absolute specifiers."""

    def test_basic_resolution(self, temp_dir, config, write_files):
        """`./b` from a.ts finds b.ts next to it."""
        write_files(temp_dir, {"a.ts": "", "b.ts": ""})

        assert resolve_import("./b", importer(temp_dir), config) == str(temp_dir / "b.ts")

    def test_extension_priority(self, temp_dir, config, write_files):
        """With b.ts and b.js present, the first extension in priority order wins."""
        write_files(temp_dir, {"a.ts": "", "b.ts": "", "b.js": ""})

        for _ in range(3):
            assert resolve_import("./b", importer(temp_dir), config) == str(temp_dir / "b.ts")

        js_first = ResolverConfig(base_dir=str(temp_dir), extension_priority=(".js", ".ts"))
        assert resolve_import("./b", importer(temp_dir), js_first) == str(temp_dir / "b.js")

    def test_default_extension_order(self):
        assert DEFAULT_EXTENSIONS == (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

    def test_exact_file_wins(self, temp_dir, config, write_files):
        write_files(temp_dir, {"b.js": "", "b.js.ts": ""})

        assert resolve_import("./b.js", importer(temp_dir), config) == str(temp_dir / "b.js")

    def test_parent_directory(self, temp_dir, config, write_files):
        write_files(temp_dir, {"lib/util.js": "", "src/deep/a.ts": ""})

        result = resolve_import("../../lib/util", importer(temp_dir, "src/deep/a.ts"), config)

        assert result == str(temp_dir / "lib" / "util.js")

    def test_directory_index(self, temp_dir, config, write_files):
        write_files(temp_dir, {"widgets/index.js": "", "widgets/index.ts": ""})

        assert resolve_import("./widgets", importer(temp_dir), config) == str(temp_dir / "widgets" / "index.ts")

    def test_current_directory_index(self, temp_dir, config, write_files):
        write_files(temp_dir, {"pkg/index.ts": "", "pkg/a.ts": ""})

        result = resolve_import(".", importer(temp_dir, "pkg/a.ts"), config)

        assert result == str(temp_dir / "pkg" / "index.ts")

    def test_directory_without_index_falls_back_to_extension(self, temp_dir, config, write_files):
        write_files(temp_dir, {"store/readme.md": "", "store.ts": ""})

        assert resolve_import("./store", importer(temp_dir), config) == str(temp_dir / "store.ts")

    def test_existing_extension_not_doubled(self, temp_dir, config, write_files):
        """`./c.ts` never probes `c.ts.ts`, but still tries other extensions."""
        write_files(temp_dir, {"c.ts.ts": ""})
        assert resolve_import("./c.ts", importer(temp_dir), config) is None

        write_files(temp_dir, {"c.ts.js": ""})
        assert resolve_import("./c.ts", importer(temp_dir), config) == str(temp_dir / "c.ts.js")

    def test_absolute_specifier(self, temp_dir, config, write_files):
        write_files(temp_dir, {"shared/types.ts": ""})

        result = resolve_import(str(temp_dir / "shared" / "types"), importer(temp_dir, "x/a.ts"), config)

        assert result == str(temp_dir / "shared" / "types.ts")

    def test_missing_relative_is_unresolved(self, temp_dir, config, write_files):
        assert resolve_import("./nope", importer(temp_dir), config) is None

    def test_result_is_normalized(self, temp_dir, config, write_files):
        write_files(temp_dir, {"b.ts": "", "src/a.ts": ""})

        result = resolve_import("./../b", importer(temp_dir, "src/a.ts"), config)

        assert result == str(temp_dir / "b.ts")
        assert ".." not in result.split(os.sep)


class TestExternalModules:
    """Bare specifiers."""

    def test_bare_specifier_unresolved(self, temp_dir, config, write_files):
        write_files(temp_dir, {"lodash.ts": ""})

        assert resolve_import("lodash", importer(temp_dir), config) is None

    def test_bare_specifier_skips_filesystem(self, temp_dir, monkeypatch):
        def fail(*args):
            raise AssertionError("filesystem probed for a bare specifier")

        monkeypatch.setattr(resolver_module, "_resolve_candidate", fail)
        config = ResolverConfig(base_dir=str(temp_dir), alias_table={"@app/*": ["src/*"]})

        assert resolve_import("react", importer(temp_dir), config) is None
        assert resolve_import("@scope/pkg", importer(temp_dir), config) is None

    @pytest.mark.parametrize("specifier, expected", [
        ("./a", True),
        ("../a", True),
        (".", True),
        ("..", True),
        ("/abs/path", True),
        ("lodash", False),
        ("@app/x", False),
        (".hidden", False),
    ])
    def test_is_relative_specifier(self, specifier, expected):
        assert is_relative_specifier(specifier) is expected


class TestAliases:
    """Path alias expansion."""

    def test_alias_matches_relative_equivalent(self, temp_dir, write_files):
        write_files(temp_dir, {"src/utils.ts": "", "src/feature/view.ts": "", "index.ts": ""})
        config = ResolverConfig(base_dir=str(temp_dir), alias_table={"@app/*": ["src/*"]})

        via_alias = resolve_import("@app/utils", importer(temp_dir, "src/feature/view.ts"), config)
        via_relative = resolve_import("./src/utils", importer(temp_dir, "index.ts"), config)

        assert via_alias == via_relative == str(temp_dir / "src" / "utils.ts")

    def test_templates_tried_in_order(self, temp_dir, write_files):
        write_files(temp_dir, {"lib/x.ts": "", "vendor/x.ts": ""})
        config = ResolverConfig(
            base_dir=str(temp_dir),
            alias_table={"@lib/*": ["missing/*", "lib/*", "vendor/*"]},
        )

        assert resolve_import("@lib/x", importer(temp_dir), config) == str(temp_dir / "lib" / "x.ts")

    def test_later_pattern_used_when_earlier_fails(self, temp_dir, write_files):
        write_files(temp_dir, {"fallback/thing.ts": ""})
        config = ResolverConfig(
            base_dir=str(temp_dir),
            alias_table={"@/*": ["src/*"], "@/thing": ["fallback/thing"]},
        )

        assert resolve_import("@/thing", importer(temp_dir), config) == str(temp_dir / "fallback" / "thing.ts")

    def test_exact_alias(self, temp_dir, write_files):
        write_files(temp_dir, {"src/config/index.ts": ""})
        config = ResolverConfig(base_dir=str(temp_dir), alias_table={"config": ["src/config"]})

        assert resolve_import("config", importer(temp_dir), config) == str(temp_dir / "src" / "config" / "index.ts")

    def test_alias_with_suffix(self, temp_dir, write_files):
        write_files(temp_dir, {"assets/logo.svg.ts": ""})
        config = ResolverConfig(base_dir=str(temp_dir), alias_table={"*.svg": ["assets/*.svg.ts"]})

        assert resolve_import("logo.svg", importer(temp_dir), config) == str(temp_dir / "assets" / "logo.svg.ts")

    def test_alias_not_expanded_recursively(self, temp_dir, write_files):
        """An expansion that looks like another alias is not expanded again."""
        write_files(temp_dir, {"src/x.ts": ""})
        config = ResolverConfig(
            base_dir=str(temp_dir),
            alias_table={"@a/*": ["@b/*"], "@b/*": ["src/*"]},
        )

        assert resolve_import("@a/x", importer(temp_dir), config) is None
        assert resolve_import("@b/x", importer(temp_dir), config) == str(temp_dir / "src" / "x.ts")

    def test_base_dir_is_alias_root(self, temp_dir, write_files):
        write_files(temp_dir, {"app/src/util.ts": "", "other/a.ts": ""})
        config = ResolverConfig(base_dir=str(temp_dir / "app"), alias_table={"~/*": ["src/*"]})

        assert resolve_import("~/util", importer(temp_dir, "other/a.ts"), config) == str(temp_dir / "app" / "src" / "util.ts")
