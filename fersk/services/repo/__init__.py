"""代码仓服务模块

- git.py: git 命令适配器
- sync.py: 工作目录同步（clone/fetch、远程重设、reset/clean、checkout）
- workspace.py: 工作目录列表
"""

from fersk.services.repo.git import GitAdapter
from fersk.services.repo.sync import (
    RESERVED_PREFIX,
    RESERVED_REMOTE,
    SyncRequest,
    WorkspaceSynchronizer,
)
from fersk.services.repo.workspace import WorkspaceManager

__all__ = [
    "GitAdapter",
    "WorkspaceSynchronizer",
    "SyncRequest",
    "WorkspaceManager",
    "RESERVED_REMOTE",
    "RESERVED_PREFIX",
]
