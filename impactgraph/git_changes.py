"""
Changed-file detection from Git.

Supplies the changed-file list that the impacted closure starts from.
"""
import logging
import os
from pathlib import Path
from typing import Iterable, List

import git

logger = logging.getLogger(__name__)


class GitChangesError(RuntimeError):
    """Raised when Git cannot be queried for changes."""


def _open_repo(repo_root: Path) -> git.Repo:
    try:
        return git.Repo(repo_root, search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
        raise GitChangesError(f"{repo_root} is not inside a Git repository") from e


def _absolute(repo: git.Repo, paths: Iterable[str]) -> List[str]:
    work_tree = repo.working_tree_dir
    return sorted({os.path.normpath(os.path.join(work_tree, p)) for p in paths if p})


def get_changed_files(repo_root: Path, from_ref: str, to_ref: str = "HEAD") -> List[str]:
    """
    Get files changed between two refs.

    Renamed files are reported under their new path; deleted files are kept.

    Args:
        repo_root: Any path inside the repository
        from_ref: Base reference (e.g. 'main', a commit SHA)
        to_ref: Head reference (default: 'HEAD')

    Returns:
        Sorted absolute paths
    """
    repo = _open_repo(repo_root)
    try:
        base = repo.commit(from_ref)
        head = repo.commit(to_ref)
    except (git.exc.BadName, ValueError) as e:
        raise GitChangesError(f"Unknown ref: {e}") from e

    changed = []
    for diff in base.diff(head):
        if diff.deleted_file:
            changed.append(diff.a_path)
        else:
            changed.append(diff.b_path or diff.a_path)

    files = _absolute(repo, changed)
    logger.debug("Found %d changed files between %s..%s", len(files), from_ref, to_ref)
    return files


def get_working_tree_changes(repo_root: Path) -> List[str]:
    """Staged, unstaged and untracked files, as sorted absolute paths."""
    repo = _open_repo(repo_root)
    changed = set()

    try:
        for diff in repo.index.diff(None):
            changed.update(p for p in (diff.a_path, diff.b_path) if p)

        if repo.head.is_valid():
            for diff in repo.index.diff("HEAD"):
                changed.update(p for p in (diff.a_path, diff.b_path) if p)
        else:
            # No commits yet: everything in the index is new
            changed.update(path for path, _stage in repo.index.entries)

        changed.update(repo.untracked_files)
    except git.GitCommandError as e:
        raise GitChangesError(f"git status failed: {e}") from e

    files = _absolute(repo, changed)
    logger.debug("Found %d working tree changes", len(files))
    return files
