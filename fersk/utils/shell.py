"""子进程执行

git 调用（捕获输出）和用户命令（stdio 直通终端）走同一个执行器。
执行器可整体替换，测试里注入假实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol

from fersk.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """子进程结束状态

    returncode < 0 表示被信号 -returncode 终止（subprocess 的约定）。
    passthrough 模式下 stdout / stderr 为空串。
    """

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def signaled(self) -> bool:
        return self.returncode < 0


class CommandExecutor(Protocol):
    """执行 argv 形式的命令

    capture=True 收集文本输出；capture=False 继承当前 stdio，只有 stdout
    可以改向。无法启动进程时抛 OSError，由调用方归类。
    """

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path = ".",
        capture: bool = True,
        stdout: IO[str] | int | None = None,
    ) -> CommandResult:
        ...


class LocalExecutor:
    """subprocess 实现"""

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path = ".",
        capture: bool = True,
        stdout: IO[str] | int | None = None,
    ) -> CommandResult:
        if capture:
            proc = subprocess.run(
                list(argv), cwd=cwd, capture_output=True,
                encoding="utf-8", errors="surrogateescape", check=False,
            )
            return CommandResult(proc.returncode, proc.stdout, proc.stderr)
        proc = subprocess.run(list(argv), cwd=cwd, stdout=stdout, check=False)
        return CommandResult(proc.returncode)


_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    return _executor


def set_executor(executor: CommandExecutor) -> None:
    """替换进程内的默认执行器"""
    global _executor  # noqa: PLW0603
    _executor = executor


def exec_command(
    args: list[str], *, cwd: str | Path,
    stdout: IO[str] | int | None = None,
) -> CommandResult:
    """在 cwd 下运行用户命令，stdio 直通

    只有命令为空或无法启动时抛 ExecutionError；退出码由调用方判断。
    """
    if not args:
        raise ExecutionError("命令为空")
    logger.info("执行命令: %s (cwd=%s)", shlex.join(args), cwd)
    try:
        return get_executor().execute(args, cwd=cwd, capture=False, stdout=stdout)
    except OSError as e:
        raise ExecutionError(f"命令无法执行: {args[0]}: {e}") from e
