"""统一异常体系

所有业务异常继承 FerskError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出一行友好提示，并按 exit_code 退出。
"""

from __future__ import annotations


class FerskError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(FerskError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(FerskError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"


class NotARepositoryError(FerskError):
    """源路径不在 Git 仓库内"""

    code = "NOT_A_REPOSITORY"


class WorkspaceError(FerskError):
    """工作目录创建 / 清理失败"""

    code = "WORKSPACE_ERROR"


class LockError(FerskError):
    """锁目录或锁文件无法创建"""

    code = "LOCK_ERROR"


class LockContendedError(LockError):
    """工作目录锁被另一个存活进程持有

    与普通失败区分：这是可预期、可操作的状态（稍后重试 / 检查其他进程）。
    """

    code = "LOCK_CONTENDED"
    exit_code = 75  # EX_TEMPFAIL

    def __init__(self, lock_path: str, pid: int | None = None) -> None:
        owner = f"pid={pid}" if pid is not None else "未知进程"
        super().__init__(
            f"另一个运行正在使用该工作目录 ({owner})，锁文件: {lock_path}"
        )
        self.lock_path = lock_path
        self.pid = pid


class GitError(FerskError):
    """Git 调用失败"""

    code = "GIT_ERROR"

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class GitExecuteError(GitError):
    """git 无法启动（可执行文件缺失、无权限等）"""

    code = "GIT_EXECUTE"


class GitExitError(GitError):
    """git 已运行但返回非零；被信号终止时 returncode 为 None"""

    code = "GIT_EXIT"

    def __init__(
        self, command: str, returncode: int | None, stderr: str = "",
    ) -> None:
        rc = returncode if returncode is not None else "未知"
        msg = f"git {command} 失败 (rc={rc})"
        if stderr:
            msg = f"{msg}: {stderr}"
        super().__init__(msg, command=command, stderr=stderr)
        self.returncode = returncode


class SyncError(FerskError):
    """工作目录同步的某一步失败，stage 标明失败的步骤"""

    code = "SYNC_ERROR"

    def __init__(self, stage: str, cause: Exception) -> None:
        super().__init__(f"同步失败 [{stage}]: {cause}")
        self.stage = stage
        self.cause = cause


class ExecutionError(FerskError):
    """命令无法执行"""

    code = "EXECUTION_ERROR"


class CommandFailedError(FerskError):
    """用户命令返回非零，退出码透传"""

    code = "COMMAND_FAILED"

    def __init__(self, returncode: int | None) -> None:
        rc = returncode if returncode is not None else "未知"
        super().__init__(f"命令返回非零退出码: {rc}")
        self.returncode = returncode
        self.exit_code = returncode if returncode and returncode > 0 else 1
