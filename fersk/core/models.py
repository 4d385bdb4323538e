"""核心数据模型

版本（分支 / 提交）、工作目录路径、同步与执行结果集中定义，
服务层与 CLI 统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

# =========================================================================
# 版本
# =========================================================================


@dataclass(frozen=True)
class Branch:
    """分支名"""

    name: str

    def checkout_target(self, remote: str) -> str:
        """工作目录里要检出的 ref：fetch 之后的远程跟踪分支"""
        return f"{remote}/{self.name}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Commit:
    """提交 ID（完整或缩写的 SHA，或任何 git 可解析的提交表达式）"""

    sha: str

    def checkout_target(self, remote: str) -> str:
        return self.sha

    def __str__(self) -> str:
        return self.sha


GitRev = Union[Branch, Commit]


def resolve_requested_revision(branch: str = "", commit: str = "") -> GitRev | None:
    """显式指定的版本：分支优先于提交，都未指定时返回 None"""
    if branch:
        return Branch(branch)
    if commit:
        return Commit(commit)
    return None


# =========================================================================
# 工作目录
# =========================================================================


@dataclass
class WorkspacePaths:
    """一个源仓库对应的工作目录与锁文件"""

    source_path: Path   # 规范化后的源仓库根目录
    identity: str       # 源仓库路径的摘要
    work_path: Path     # <work_root>/<identity>
    lock_path: Path     # <work_root>/.locks/<identity>.pid


@dataclass
class SyncResult:
    """一次同步的结果"""

    source_path: Path
    work_path: Path
    revision: GitRev
    cloned: bool = False   # True 表示本次新 clone，False 表示 fetch 刷新
    commit_sha: str = ""


@dataclass
class RunResult:
    """同步 + 执行用户命令的结果（--json 输出的记录）"""

    source_path: Path
    work_path: Path
    revision: GitRev
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": str(self.source_path),
            "work_path": str(self.work_path),
            "revision": str(self.revision),
        }


@dataclass
class WorkspaceInfo:
    """已初始化工作目录的概况"""

    identity: str
    path: str
    source_url: str = ""
    commit: str = ""
    locked_by: int | None = None
    remotes: list[str] = field(default_factory=list)
