"""测试共享 fixture：隔离 git / 配置环境，构造源仓库"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

import fersk.core.config as cfgmod

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="需要 git")


def git(cwd: Path, *args: str) -> str:
    """在 cwd 下执行 git 并返回 stdout"""
    r = subprocess.run(
        ["git", *args], cwd=str(cwd), capture_output=True, text=True, check=True,
    )
    return r.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str = "") -> str:
    """写入文件并提交，返回新提交的 SHA"""
    path = repo / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message or f"update {name}")
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """git 身份、全局配置、XDG 目录和全局 Config 都指向临时目录"""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "fersk")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "fersk@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "fersk")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "fersk@example.com")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv("FERSK_CONFIG", raising=False)
    monkeypatch.delenv("FERSK_WORK_PATH", raising=False)
    monkeypatch.delenv("FERSK_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FERSK_LOG_JSON", raising=False)
    monkeypatch.setattr(cfgmod, "_current", None)
    yield


@pytest.fixture()
def source_repo(tmp_path: Path) -> Path:
    """main 分支上有一次提交的源仓库，build/ 被忽略"""
    if shutil.which("git") is None:
        pytest.skip("需要 git")
    repo = tmp_path / "src"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / ".gitignore").write_text("build/\n", encoding="utf-8")
    git(repo, "add", ".gitignore")
    commit_file(repo, "README.md", "hello\n", "initial")
    return repo


@pytest.fixture()
def work_root(tmp_path: Path) -> Path:
    return tmp_path / "work"
