"""Git command helpers.

Every command runs with an explicit ``--git-dir``/``--work-tree`` pair so
git never walks up into an enclosing repository when the target directory
is itself broken.
"""

import os
import logging
import subprocess
from typing import List, Optional, Dict

from ..core.errors import RepositoryNotFound, RepositoryOperationFailed

logger = logging.getLogger('pendector')

GIT_DIR_NAME = '.git'
BRANCH_REF_PREFIX = 'refs/heads/'


def git_base_command(repo_path: str) -> List[str]:
    """Build the git invocation prefix pinned to a repository.

    Args:
        repo_path: Repository root

    Returns:
        Command prefix list
    """
    return [
        "git",
        f"--git-dir={os.path.join(repo_path, GIT_DIR_NAME)}",
        f"--work-tree={repo_path}",
    ]


def git_env(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Environment for git subprocesses with untranslated messages."""
    env = os.environ.copy()
    env['LC_ALL'] = 'C'
    if extra:
        env.update(extra)
    return env


def run_git(
    repo_path: str,
    args: List[str],
    operation: Optional[str] = None,
    check: bool = True
) -> subprocess.CompletedProcess:
    """Run a git command in a repository.

    Args:
        repo_path: Repository root
        args: Git arguments (without the leading "git")
        operation: Name reported in errors (defaults to the subcommand)
        check: Raise RepositoryOperationFailed on a non-zero exit

    Returns:
        Completed process with text stdout/stderr

    Raises:
        RepositoryOperationFailed: If git cannot be started, or exits
            non-zero while check is set
    """
    operation = operation or args[0]
    command = git_base_command(repo_path) + args
    logger.debug(f"Running: {' '.join(command)}")

    try:
        result = subprocess.run(
            command,
            cwd=repo_path,
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='replace',
            stdin=subprocess.DEVNULL,
            env=git_env(),
            check=False
        )
    except OSError as e:
        raise RepositoryOperationFailed(repo_path, operation, e) from e

    if check and result.returncode != 0:
        cause = result.stderr.strip() or f"exit code {result.returncode}"
        raise RepositoryOperationFailed(repo_path, operation, cause)
    return result


def has_git_dir(path: str) -> bool:
    """Check whether a directory directly contains a ``.git`` directory.

    A ``.git`` file (submodule or worktree gitlink) does not count.

    Args:
        path: Directory to check

    Returns:
        True if ``path/.git`` is a real directory
    """
    git_dir = os.path.join(path, GIT_DIR_NAME)
    return os.path.isdir(git_dir) and not os.path.islink(git_dir)


def open_repository(repo_path: str) -> None:
    """Verify that a path is a usable repository root.

    Args:
        repo_path: Directory to check

    Raises:
        RepositoryNotFound: If metadata is missing or git rejects it
    """
    if not has_git_dir(repo_path):
        raise RepositoryNotFound(repo_path)
    result = run_git(repo_path, ["rev-parse", "--git-dir"], operation="open repository", check=False)
    if result.returncode != 0:
        logger.debug(f"git rejected {repo_path}: {result.stderr.strip()}")
        raise RepositoryNotFound(repo_path)


def get_current_branch(repo_path: str) -> Optional[str]:
    """Get the current branch of the repository.

    The name comes from the symbolic HEAD ref, so a tag sharing the
    branch name does not change it.

    Args:
        repo_path: Repository root

    Returns:
        Branch name, "HEAD" when detached, or None on an unborn HEAD
    """
    if resolve_commit(repo_path, 'HEAD') is None:
        return None
    result = run_git(repo_path, ["symbolic-ref", "-q", "HEAD"], check=False)
    if result.returncode != 0:
        return 'HEAD'
    ref = result.stdout.strip()
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref or None


def resolve_commit(repo_path: str, ref: str) -> Optional[str]:
    """Resolve a ref to a commit id.

    Args:
        repo_path: Repository root
        ref: Ref name, e.g. "HEAD" or "refs/remotes/origin/main"

    Returns:
        Full commit id, or None if the ref does not exist
    """
    result = run_git(
        repo_path,
        ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
        check=False
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_merge_base(repo_path: str, commit_a: str, commit_b: str) -> Optional[str]:
    """Find the best common ancestor of two commits.

    Args:
        repo_path: Repository root
        commit_a: First commit id
        commit_b: Second commit id

    Returns:
        Merge base commit id, or None when the histories are disjoint

    Raises:
        RepositoryOperationFailed: If git fails for another reason
    """
    result = run_git(repo_path, ["merge-base", commit_a, commit_b], check=False)
    if result.returncode == 0:
        return result.stdout.strip() or None
    # Exit code 1 with no output means "no common ancestor"
    if result.returncode == 1 and not result.stderr.strip():
        return None
    raise RepositoryOperationFailed(repo_path, "merge-base", result.stderr.strip())


def get_porcelain_status(repo_path: str) -> str:
    """Get machine-readable working tree status.

    Untracked files are included, ignored files are not, and rename
    detection is disabled.

    Args:
        repo_path: Repository root

    Returns:
        NUL-separated ``git status --porcelain=v1 -z`` output
    """
    result = run_git(
        repo_path,
        ["status", "--porcelain=v1", "-z", "--untracked-files=normal", "--no-renames"],
        operation="get status"
    )
    return result.stdout
