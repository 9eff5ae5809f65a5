from __future__ import annotations

from pathlib import Path

import pygit2
import pytest


class RepoHelper:
    """Test helper with write/commit methods on top of a pygit2.Repository."""

    def __init__(self, repo: pygit2.Repository):
        self.repo = repo
        self.root = Path(repo.workdir)

    def write(self, relpath: str, content: str) -> Path:
        p = self.root / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)
        return p

    def commit(self, message: str, files: dict[str, str] | None = None) -> pygit2.Commit:
        for relpath, content in (files or {"README.md": f"{message}\n"}).items():
            self.write(relpath, content)
            self.repo.index.add(relpath)
        self.repo.index.write()

        sig = pygit2.Signature("Test User", "test@example.com")
        tree_oid = self.repo.index.write_tree()
        if self.repo.head_is_unborn:
            parents = []
        else:
            parents = [self.repo.head.target]
        oid = self.repo.create_commit("HEAD", sig, sig, message, tree_oid, parents)
        return self.repo.get(oid)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    """Point teemiao at an empty config directory and clear env overrides."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("TEEMIAO_CONFIG", str(config_dir))
    for name in ("TEEMIAO_BUILD_INFO_OUT", "TEEMIAO_ATOMIC_WRITE", "TEEMIAO_VERBOSITY"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


@pytest.fixture
def empty_repo(tmp_path: Path) -> pygit2.Repository:
    """Freshly initialised repository with an unborn HEAD."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    repo = pygit2.init_repository(str(repo_dir), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"
    return repo


@pytest.fixture
def repo_helper(empty_repo: pygit2.Repository) -> RepoHelper:
    return RepoHelper(empty_repo)


@pytest.fixture
def git_repo(repo_helper: RepoHelper) -> RepoHelper:
    """Repository with a single commit on main."""
    repo_helper.commit("Initial commit")
    return repo_helper


@pytest.fixture
def not_a_repo(tmp_path: Path) -> Path:
    path = tmp_path / "plain"
    path.mkdir()
    return path
