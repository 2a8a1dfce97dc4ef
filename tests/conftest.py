from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

GIT_CONFIG = [
    "-c", "user.name=Pendector Test",
    "-c", "user.email=test@example.com",
    "-c", "commit.gpgsign=false",
    "-c", "init.defaultBranch=main",
    "-c", "core.hooksPath=/dev/null",
]


class GitRepos:
    """Builds throwaway repositories with the real git binary."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def git(self, cwd: Path, *args: str) -> str:
        p = subprocess.run(
            ["git", *GIT_CONFIG, *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
        return p.stdout.strip()

    def init(self, path: Path, branch: str = "main") -> Path:
        path.mkdir(parents=True, exist_ok=True)
        self.git(path, "init", "-q")
        self.git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
        return path

    def commit(self, repo: Path, filename: str = "README.md", content: str | None = None, message: str = "commit") -> str:
        target = repo / filename
        existing = target.read_text() if target.exists() else ""
        target.write_text(content if content is not None else existing + f"{message}\n")
        self.git(repo, "add", filename)
        self.git(repo, "commit", "-q", "-m", message)
        return self.head(repo)

    def head(self, repo: Path) -> str:
        return self.git(repo, "rev-parse", "HEAD")

    def with_origin(self, name: str = "local") -> tuple[Path, Path]:
        """Create a bare ``origin`` with one commit and a clone of it.

        Returns:
            (origin bare path, clone path)
        """
        seed = self.init(self.root / f"{name}-seed")
        self.commit(seed, message="initial")
        origin = self.root / f"{name}-origin.git"
        self.git(self.root, "clone", "-q", "--bare", str(seed), str(origin))
        clone = self.root / name
        self.git(self.root, "clone", "-q", str(origin), str(clone))
        return origin, clone

    def push_from_other_clone(self, origin: Path, message: str = "upstream change") -> str:
        """Add a commit to origin/main through a second clone."""
        other = self.root / f"other-{message.replace(' ', '-')}"
        self.git(self.root, "clone", "-q", str(origin), str(other))
        sha = self.commit(other, filename="upstream.txt", message=message)
        self.git(other, "push", "-q", "origin", "main")
        return sha


@pytest.fixture
def repos(tmp_path: Path) -> GitRepos:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return GitRepos(tmp_path)
