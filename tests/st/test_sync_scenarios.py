"""工作目录同步端到端场景（真实 git）"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import commit_file, git, requires_git

from fersk.core.models import Branch, Commit
from fersk.services.repo.git import GitAdapter
from fersk.services.repo.sync import RESERVED_REMOTE, SyncRequest, WorkspaceSynchronizer

pytestmark = requires_git


@pytest.fixture()
def syncer(work_root: Path) -> WorkspaceSynchronizer:
    return WorkspaceSynchronizer(GitAdapter(silent=True), work_root)


def _tracked_tree(repo: Path) -> dict[str, str]:
    """工作区中除 .git 外的所有文件及内容"""
    return {
        str(p.relative_to(repo)): p.read_text(encoding="utf-8")
        for p in sorted(repo.rglob("*"))
        if p.is_file() and ".git" not in p.relative_to(repo).parts
    }


class TestScenarios:
    def test_fresh_work_root_clones_current_branch(self, syncer, source_repo: Path) -> None:
        """首次运行：clone，跟踪 main，工作区等于源仓库的当前提交"""
        head = git(source_repo, "rev-parse", "HEAD")
        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest())

        assert result.cloned is True
        assert result.revision == Branch("main")
        assert result.commit_sha == head
        assert git(paths.work_path, "rev-parse", "HEAD") == head
        assert _tracked_tree(paths.work_path) == _tracked_tree(source_repo)
        assert git(paths.work_path, "remote", "get-url", RESERVED_REMOTE) == str(paths.source_path)

    def test_source_advance_fetched_not_recloned(self, syncer, source_repo: Path) -> None:
        """源仓库前进后再运行：fetch 而不是 clone，工作区更新到新提交"""
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest())

        new_head = commit_file(source_repo, "src/app.py", "print('v2')\n")
        result = syncer.sync(paths, SyncRequest())

        assert result.cloned is False
        assert git(paths.work_path, "rev-parse", "HEAD") == new_head
        assert (paths.work_path / "src" / "app.py").read_text() == "print('v2')\n"

    def test_explicit_commit_not_at_tip_detaches(self, syncer, source_repo: Path) -> None:
        """指定非分支顶端的提交：工作区处于分离状态且正好在该提交"""
        old = commit_file(source_repo, "a.txt", "1\n")
        commit_file(source_repo, "a.txt", "2\n")
        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest(commit=old))

        assert result.revision == Commit(old)
        assert git(paths.work_path, "rev-parse", "HEAD") == old
        assert git(paths.work_path, "rev-parse", "--abbrev-ref", "HEAD") == "HEAD"
        assert (paths.work_path / "a.txt").read_text() == "1\n"

    def test_idempotent(self, syncer, source_repo: Path) -> None:
        paths = syncer.prepare(source_repo)
        first = syncer.sync(paths, SyncRequest())
        tree = _tracked_tree(paths.work_path)
        second = syncer.sync(paths, SyncRequest())

        assert first.cloned is True
        assert second.cloned is False
        assert first.commit_sha == second.commit_sha
        assert _tracked_tree(paths.work_path) == tree

    def test_leftovers_removed(self, syncer, source_repo: Path) -> None:
        """上次运行留下的修改、未跟踪文件和被忽略的构建产物都被清除"""
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest())
        ws = paths.work_path
        (ws / "README.md").write_text("local edit\n")
        (ws / "stray.txt").write_text("x")
        (ws / "build").mkdir()
        (ws / "build" / "out.o").write_text("obj")
        (ws / "tmpdir" / "nested").mkdir(parents=True)

        syncer.sync(paths, SyncRequest())

        assert (ws / "README.md").read_text() == "hello\n"
        assert not (ws / "stray.txt").exists()
        assert not (ws / "build").exists()
        assert not (ws / "tmpdir").exists()
        assert _tracked_tree(ws) == _tracked_tree(source_repo)

    def test_branch_precedence(self, syncer, source_repo: Path) -> None:
        base = git(source_repo, "rev-parse", "HEAD")
        git(source_repo, "checkout", "-q", "-b", "feature")
        feature = commit_file(source_repo, "f.txt", "feature\n")
        git(source_repo, "checkout", "-q", "main")

        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest(branch="feature", commit=base))

        assert result.revision == Branch("feature")
        assert git(paths.work_path, "rev-parse", "HEAD") == feature

    def test_current_branch_followed(self, syncer, source_repo: Path) -> None:
        git(source_repo, "checkout", "-q", "-b", "topic")
        topic = commit_file(source_repo, "t.txt", "t\n")
        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest())
        assert result.revision == Branch("topic")
        assert git(paths.work_path, "rev-parse", "HEAD") == topic

    @pytest.mark.parametrize("branch", ["fix#12+hotfix", "用户/功能"])
    def test_current_branch_with_unusual_name(self, syncer, source_repo: Path, branch: str) -> None:
        """git 允许的分支名都能跟踪，不限于字母数字"""
        git(source_repo, "checkout", "-q", "-b", branch)
        head = commit_file(source_repo, "b.txt", "b\n")
        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest())
        assert result.revision == Branch(branch)
        assert git(paths.work_path, "rev-parse", "HEAD") == head

    def test_explicit_unusual_branch(self, syncer, source_repo: Path) -> None:
        git(source_repo, "checkout", "-q", "-b", "fix#12+hotfix")
        head = commit_file(source_repo, "b.txt", "b\n")
        git(source_repo, "checkout", "-q", "main")
        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest(branch="fix#12+hotfix"))
        assert result.revision == Branch("fix#12+hotfix")
        assert git(paths.work_path, "rev-parse", "HEAD") == head

    def test_detached_source(self, syncer, source_repo: Path) -> None:
        old = git(source_repo, "rev-parse", "HEAD")
        commit_file(source_repo, "a.txt", "new\n")
        git(source_repo, "checkout", "-q", old)

        paths = syncer.prepare(source_repo)
        result = syncer.sync(paths, SyncRequest())
        assert result.revision == Commit(old)
        assert git(paths.work_path, "rev-parse", "HEAD") == old

    def test_source_never_mutated(self, syncer, source_repo: Path) -> None:
        (source_repo / "wip.txt").write_text("uncommitted")
        (source_repo / "README.md").write_text("dirty\n")
        before = _tracked_tree(source_repo)
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest())
        assert _tracked_tree(source_repo) == before
        # 未提交的修改不会进入工作目录
        assert not (paths.work_path / "wip.txt").exists()


class TestRemotes:
    def test_tracking_remote_rewired(self, syncer, source_repo: Path) -> None:
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest())
        git(paths.work_path, "remote", "set-url", RESERVED_REMOTE, "/somewhere/else")

        syncer.sync(paths, SyncRequest())
        assert git(paths.work_path, "remote", "get-url", RESERVED_REMOTE) == str(paths.source_path)

    def test_copy_remote_not_contacted(self, syncer, source_repo: Path) -> None:
        """复制的远程只写配置；地址不可达也不影响同步"""
        url = "https://invalid.example.invalid/repo.git"
        git(source_repo, "remote", "add", "upstream", url)
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest(copy_remote="upstream"))
        assert git(paths.work_path, "remote", "get-url", "upstream") == url
        assert sorted(git(paths.work_path, "remote").split()) == [RESERVED_REMOTE, "upstream"]

    def test_copy_remote_updated_on_rerun(self, syncer, source_repo: Path) -> None:
        git(source_repo, "remote", "add", "upstream", "https://example.invalid/a.git")
        paths = syncer.prepare(source_repo)
        syncer.sync(paths, SyncRequest(copy_remote="upstream"))
        git(source_repo, "remote", "set-url", "upstream", "https://example.invalid/b.git")
        syncer.sync(paths, SyncRequest(copy_remote="upstream"))
        assert git(paths.work_path, "remote", "get-url", "upstream") == "https://example.invalid/b.git"


class TestIdentity:
    def test_same_repo_from_subdir_same_workspace(self, syncer, source_repo: Path) -> None:
        sub = source_repo / "pkg"
        sub.mkdir()
        assert syncer.prepare(sub).work_path == syncer.prepare(source_repo).work_path

    def test_different_repos_different_workspaces(self, syncer, source_repo: Path, tmp_path: Path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        git(other, "init", "-q")
        assert syncer.prepare(other).work_path != syncer.prepare(source_repo).work_path
