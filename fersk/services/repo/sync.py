"""工作目录同步

职责：
- 源仓库路径 → 规范化根目录 → 标识 → 工作目录 / 锁文件路径
- 工作目录不存在时 clone，存在时重设跟踪远程并 fetch
- 复制源仓库的额外远程配置（只写配置，不访问该远程）
- reset + clean 得到干净的工作区，再检出目标版本

加锁由调用方负责（见 RunService），锁的范围覆盖同步和用户命令执行。
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from fersk.core.exceptions import (
    GitError,
    NotARepositoryError,
    SyncError,
    ValidationError,
    WorkspaceError,
)
from fersk.core.identity import repository_identity
from fersk.core.lock import lock_path_for
from fersk.core.models import GitRev, SyncResult, WorkspacePaths, resolve_requested_revision
from fersk.services.repo.git import GitAdapter, validate_ref, validate_remote_name

logger = logging.getLogger(__name__)

# 工作目录中指向源仓库的远程，前缀保留，用户复制的远程不得使用
RESERVED_PREFIX = "fersk-"
RESERVED_REMOTE = f"{RESERVED_PREFIX}source"


@dataclass
class SyncRequest:
    """同步请求 DTO"""

    branch: str = ""
    commit: str = ""
    copy_remote: str = ""

    def validate(self) -> None:
        if self.branch:
            validate_ref(self.branch)
        if self.commit:
            validate_ref(self.commit)
        if self.copy_remote:
            validate_remote_name(self.copy_remote)
            if self.copy_remote.startswith(RESERVED_PREFIX):
                raise ValidationError(
                    f"远程名 {self.copy_remote!r} 使用了保留前缀 {RESERVED_PREFIX!r}"
                )


class WorkspaceSynchronizer:
    """源仓库 → 私有工作目录 的同步器"""

    def __init__(self, git: GitAdapter, work_root: str | Path) -> None:
        self.git = git
        self.work_root = Path(work_root)

    def prepare(self, source_path: str | Path) -> WorkspacePaths:
        """解析源仓库根目录并推导工作目录和锁文件路径"""
        try:
            root = self.git.get_repository_root(source_path)
        except GitError as e:
            raise NotARepositoryError(f"不是 Git 仓库: {source_path} ({e})") from e
        identity = repository_identity(root)
        return WorkspacePaths(
            source_path=root,
            identity=identity,
            work_path=self.work_root / identity,
            lock_path=lock_path_for(self.work_root, identity),
        )

    def resolve_revision(self, paths: WorkspacePaths, request: SyncRequest) -> GitRev:
        """显式分支 > 显式提交 > 源仓库当前 HEAD"""
        rev = resolve_requested_revision(request.branch, request.commit)
        if rev is not None:
            return rev
        try:
            return self.git.get_current_head(paths.source_path)
        except GitError as e:
            raise SyncError("revision", e) from e

    def sync(self, paths: WorkspacePaths, request: SyncRequest) -> SyncResult:
        """同步工作目录并检出目标版本，调用方须已持有该工作目录的锁"""
        request.validate()
        rev = self.resolve_revision(paths, request)
        ws = paths.work_path

        cloned = self._clone_or_fetch(paths)

        if request.copy_remote:
            self._copy_remote(paths, request.copy_remote)

        try:
            self.git.cleanse(ws)
        except GitError as e:
            raise SyncError("cleanse", e) from e

        target = rev.checkout_target(RESERVED_REMOTE)
        try:
            self.git.checkout(ws, target)
        except GitError as e:
            raise SyncError("checkout", e) from e

        try:
            sha = self.git.get_commit_sha(ws)
        except GitError as e:
            raise SyncError("revision", e) from e

        logger.info("工作目录就绪: %s@%s (%s) -> %s", paths.source_path, rev, sha[:12], ws)
        return SyncResult(
            source_path=paths.source_path, work_path=ws,
            revision=rev, cloned=cloned, commit_sha=sha,
        )

    # ---- 内部方法 ----

    def _clone_or_fetch(self, paths: WorkspacePaths) -> bool:
        """已初始化则 fetch，否则 clone；返回是否新 clone"""
        ws = paths.work_path
        if (ws / ".git").exists():
            try:
                self.git.set_remote_url(ws, RESERVED_REMOTE, paths.source_path)
            except GitError as e:
                raise SyncError("remote", e) from e
            try:
                self.git.fetch(ws, RESERVED_REMOTE)
            except GitError as e:
                raise SyncError("fetch", e) from e
            logger.info("已 fetch: %s", ws)
            return False

        try:
            if ws.exists():
                # 上次 clone 中途被打断留下的目录
                logger.warning("工作目录未初始化完成，重新 clone: %s", ws)
                shutil.rmtree(ws)
            ws.mkdir(parents=True)
        except OSError as e:
            raise WorkspaceError(f"无法创建工作目录: {ws}: {e}") from e

        try:
            self.git.clone(paths.source_path, ws, RESERVED_REMOTE)
        except GitError as e:
            raise SyncError("clone", e) from e
        logger.info("已 clone: %s -> %s", paths.source_path, ws)
        return True

    def _copy_remote(self, paths: WorkspacePaths, name: str) -> None:
        try:
            url = self.git.get_remote_url(paths.source_path, name)
            self.git.set_remote_url(paths.work_path, name, url)
        except GitError as e:
            raise SyncError("remote", e) from e
        logger.info("已复制远程 %s -> %s", name, url)
