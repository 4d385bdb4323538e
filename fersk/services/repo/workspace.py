"""工作空间管理 - 列出本地工作目录

只读：工作目录的删除是手工操作，这里不提供。
"""

from __future__ import annotations

import logging
from pathlib import Path

from fersk.core.exceptions import GitError
from fersk.core.lock import LOCKS_DIRNAME, lock_path_for, pid_alive, read_lock_owner
from fersk.core.models import WorkspaceInfo
from fersk.services.repo.git import GitAdapter
from fersk.services.repo.sync import RESERVED_REMOTE

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """工作空间管理器"""

    def __init__(self, work_root: str | Path, git: GitAdapter | None = None) -> None:
        self.work_root = Path(work_root)
        self.git = git or GitAdapter()

    def list_workspaces(self) -> list[WorkspaceInfo]:
        """列出已初始化（含 .git）的工作目录"""
        result: list[WorkspaceInfo] = []
        if not self.work_root.exists():
            return result
        for ws_dir in sorted(self.work_root.iterdir()):
            if ws_dir.name == LOCKS_DIRNAME or not ws_dir.is_dir():
                continue
            if not (ws_dir / ".git").exists():
                continue
            result.append(self.describe(ws_dir))
        return result

    def describe(self, ws_dir: Path) -> WorkspaceInfo:
        info = WorkspaceInfo(identity=ws_dir.name, path=str(ws_dir))
        try:
            info.remotes = self.git.list_remotes(ws_dir)
            if RESERVED_REMOTE in info.remotes:
                info.source_url = self.git.get_remote_url(ws_dir, RESERVED_REMOTE)
            info.commit = self.git.get_commit_sha(ws_dir)[:12]
        except GitError as e:
            logger.warning("读取工作目录信息失败 %s: %s", ws_dir, e)

        owner = read_lock_owner(lock_path_for(self.work_root, ws_dir.name))
        if owner is not None and pid_alive(owner):
            info.locked_by = owner
        return info
