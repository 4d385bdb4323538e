"""执行服务：同步工作目录并在其中运行用户命令

流程: 解析源仓库 → 加锁 → 同步 → 执行命令 → 释放锁。
锁覆盖同步和命令执行的全过程，同一源仓库的两次运行不会交错。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from fersk.core.exceptions import CommandFailedError, ValidationError
from fersk.core.lock import WorkspaceLock
from fersk.core.models import RunResult, SyncResult, WorkspacePaths
from fersk.services.repo.sync import SyncRequest, WorkspaceSynchronizer
from fersk.utils.shell import exec_command

logger = logging.getLogger(__name__)

STDERR_FILENO = 2


@dataclass
class RunRequest:
    """执行请求 DTO"""

    command: list[str] = field(default_factory=list)
    source_path: str = "."
    branch: str = ""
    commit: str = ""
    copy_remote: str = ""
    json_output: bool = False

    def sync_request(self) -> SyncRequest:
        return SyncRequest(
            branch=self.branch, commit=self.commit, copy_remote=self.copy_remote,
        )


class RunService:
    """在隔离工作目录中执行命令

    progress 回调接收人类可读的进度行；json_output 模式下不调用。
    """

    def __init__(
        self,
        synchronizer: WorkspaceSynchronizer,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self.synchronizer = synchronizer
        self.progress = progress

    def execute(self, req: RunRequest) -> RunResult:
        """同步并执行，命令失败抛 CommandFailedError"""
        if not req.command:
            raise ValidationError("未指定要执行的命令")
        if req.branch and req.commit:
            logger.warning("同时指定了分支和提交，使用分支 %s，忽略提交 %s", req.branch, req.commit)

        paths = self.synchronizer.prepare(req.source_path)
        with WorkspaceLock(paths.lock_path):
            synced = self.synchronizer.sync(paths, req.sync_request())
            self._report(req, paths, synced)

            # --json 模式下 stdout 只留给结果记录
            stdout = STDERR_FILENO if req.json_output else None
            r = exec_command(req.command, cwd=str(synced.work_path), stdout=stdout)
            if not r.success:
                raise CommandFailedError(None if r.signaled else r.returncode)

        return RunResult(
            source_path=synced.source_path,
            work_path=synced.work_path,
            revision=synced.revision,
            returncode=r.returncode,
        )

    def _report(self, req: RunRequest, paths: WorkspacePaths, synced: SyncResult) -> None:
        if req.json_output or self.progress is None:
            return
        self.progress(f"源仓库: {paths.source_path}")
        self.progress(f"工作目录: {synced.work_path}")
        self.progress(f"版本: {synced.revision} ({synced.commit_sha[:12]})")
