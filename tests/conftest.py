"""Pytest fixtures and test utilities."""
import tempfile
from pathlib import Path

import pytest
import git

from impactgraph import tree_sitter_base


def _write_files(root: Path, files: dict) -> None:
    """Create files under root from a {relative_path: content} mapping."""
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def write_files():
    """Helper for laying out source trees: write_files(root, {path: content})."""
    return _write_files


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def fresh_grammars():
    """Start and end the test with no grammars loaded."""
    tree_sitter_base.reset()
    yield
    tree_sitter_base.reset()


@pytest.fixture
def sample_project(temp_dir):
    """
    Create a small TypeScript/JavaScript project.

    Creates a project with:
    - src/index.ts -> utils/helper, components/App, lodash (external)
    - src/utils/helper.ts -> @app/config (alias for src/config/index.ts)
    - src/components/App.tsx -> ../utils/helper
    - src/legacy.js -> require('./utils/helper')
    - node_modules/lodash/index.js (ignored by default rules)
    """
    _write_files(temp_dir, {
        "tsconfig.json": (
            "{\n"
            "  // path aliases\n"
            '  "compilerOptions": {\n'
            '    "baseUrl": ".",\n'
            '    "paths": { "@app/*": ["src/*"] },\n'
            "  },\n"
            "}\n"
        ),
        "src/index.ts": (
            "import { helper } from './utils/helper';\n"
            "import App from './components/App';\n"
            "import _ from 'lodash';\n"
            "\n"
            "export default function main() {\n"
            "  return helper(App, _);\n"
            "}\n"
        ),
        "src/utils/helper.ts": (
            "import { CONFIG } from '@app/config';\n"
            "\n"
            "export function helper(...args: unknown[]) {\n"
            "  return [CONFIG, ...args];\n"
            "}\n"
        ),
        "src/config/index.ts": "export const CONFIG = { debug: false };\n",
        "src/components/App.tsx": (
            "import { helper } from '../utils/helper';\n"
            "\n"
            "export default function App() {\n"
            "  return <div>{String(helper())}</div>;\n"
            "}\n"
        ),
        "src/legacy.js": "const { helper } = require('./utils/helper');\nmodule.exports = helper;\n",
        "node_modules/lodash/index.js": "module.exports = {};\n",
        "README.md": "# sample\n",
    })
    yield temp_dir


@pytest.fixture
def sample_git_repo(temp_dir):
    """
    Create a sample Git repository with known history for testing.

    Creates a repository with:
    - Commit 1: a.ts, b.ts, old.ts
    - Commit 2: modify b.ts, add c.ts, delete old.ts
    """
    repo_path = temp_dir / "sample_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user (required for commits)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    # Commit 1: add a.ts, b.ts and old.ts
    _write_files(repo_path, {
        "a.ts": "import { b } from './b';\nexport const a = b;\n",
        "b.ts": "export const b = 1;\n",
        "old.ts": "export const old = 0;\n",
    })
    repo.index.add(["a.ts", "b.ts", "old.ts"])
    repo.index.commit("Initial commit")

    # Commit 2: modify b.ts, add c.ts, delete old.ts
    _write_files(repo_path, {
        "b.ts": "export const b = 2;\n",
        "c.ts": "import { a } from './a';\nexport const c = a;\n",
    })
    repo.index.add(["b.ts", "c.ts"])
    repo.index.remove(["old.ts"], working_tree=True)
    repo.index.commit("Change b, add c, remove old")

    yield repo_path
