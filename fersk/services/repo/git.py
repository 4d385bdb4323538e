"""Git 适配器：对 git 命令的窄封装

所有操作都通过 CommandExecutor 调用 git，失败只归为两类:
  - GitExecuteError: git 无法启动
  - GitExitError:    git 已运行但返回非零（被信号终止时 returncode 为 None）
"""

from __future__ import annotations

import logging
from pathlib import Path

from fersk.core.exceptions import GitExecuteError, GitExitError, ValidationError
from fersk.core.identity import normalize_path
from fersk.core.models import Branch, Commit, GitRev
from fersk.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

# 错误信息中附带的 stderr 最大长度
_STDERR_LIMIT = 300


def validate_ref(ref: str) -> str:
    """校验分支 / 提交 / 远程名

    参数以 argv 传给 git，不经过 shell；只需防止被当作选项（以 - 开头）
    和无法放进 argv 的 NUL。其余字符（# + 非 ASCII 等）都是合法的分支名。
    """
    if not ref or ref.startswith("-") or "\0" in ref:
        raise ValidationError(f"ref 不能为空、以 - 开头或包含 NUL: {ref!r}")
    return ref


validate_remote_name = validate_ref


class GitAdapter:
    """git 命令封装"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        git: str = "git",
        silent: bool = False,
    ) -> None:
        self._executor = executor
        self.git = git
        self.silent = silent

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    # ---- 仓库信息 ----

    def get_repository_root(self, path: str | Path) -> Path:
        """包含 path 的仓库根目录（已规范化）"""
        out = self._output(["rev-parse", "--show-toplevel"], cwd=path)
        return normalize_path(out)

    def get_current_head(self, path: str | Path) -> GitRev:
        """当前所在分支；分离 HEAD 时返回提交 ID"""
        out = self._output(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path)
        if out != "HEAD":
            return Branch(out)
        return Commit(self.get_commit_sha(path))

    def get_commit_sha(self, path: str | Path) -> str:
        return self._output(["rev-parse", "HEAD"], cwd=path)

    # ---- 同步 ----

    def clone(
        self, source: str | Path, destination: str | Path,
        remote_name: str | None = None,
    ) -> None:
        """clone 到 destination（须不存在或为空目录）"""
        args = ["clone"]
        if remote_name:
            args += ["--origin", validate_remote_name(remote_name)]
        args += [str(source), str(destination)]
        self._run(args)

    def fetch(self, path: str | Path, remote_name: str) -> None:
        self._run(["fetch", "--prune", validate_remote_name(remote_name)], cwd=path)

    # ---- 远程配置 ----

    def list_remotes(self, path: str | Path) -> list[str]:
        out = self._output(["remote"], cwd=path)
        return [line.strip() for line in out.splitlines() if line.strip()]

    def get_remote_url(self, path: str | Path, remote_name: str) -> str:
        return self._output(
            ["remote", "get-url", validate_remote_name(remote_name)], cwd=path,
        )

    def set_remote_url(self, path: str | Path, remote_name: str, url: str | Path) -> None:
        """确保远程存在并指向 url，已有旧值时覆盖"""
        validate_remote_name(remote_name)
        if remote_name in self.list_remotes(path):
            self._run(["remote", "set-url", remote_name, str(url)], cwd=path)
        else:
            self._run(["remote", "add", remote_name, str(url)], cwd=path)

    # ---- 工作区 ----

    def checkout(self, path: str | Path, ref: str) -> None:
        self._run(["checkout", "--force", validate_ref(ref)], cwd=path)

    def cleanse(self, path: str | Path) -> None:
        """丢弃已跟踪文件的修改，再删除所有未跟踪和被忽略的文件

        顺序不可颠倒：clean 只在已跟踪文件与 ref 完全一致之后才无条件执行。
        """
        self._run(["reset", "--hard"], cwd=path)
        self._run(["clean", "-ffdx"], cwd=path)

    # ---- 内部方法 ----

    def _exec(self, args: list[str], cwd: str | Path | None) -> CommandResult:
        cmd = [self.git, *args]
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd or ".")
        try:
            r = self.executor.execute(cmd, cwd=str(cwd) if cwd else ".")
        except OSError as e:
            raise GitExecuteError(
                f"无法执行 git ({self.git}): {e}", command=args[0],
            ) from e
        if not r.success:
            stderr = r.stderr.strip()[:_STDERR_LIMIT]
            raise GitExitError(
                args[0], None if r.signaled else r.returncode, stderr,
            )
        return r

    def _run(self, args: list[str], cwd: str | Path | None = None) -> None:
        r = self._exec(args, cwd)
        out = r.stdout.strip()
        if out:
            if self.silent:
                logger.debug("%s", out)
            else:
                logger.info("%s", out)

    def _output(self, args: list[str], cwd: str | Path | None = None) -> str:
        return self._exec(args, cwd).stdout.strip()
