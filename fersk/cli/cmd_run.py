"""CLI: 运行命令"""

from __future__ import annotations

import json
import signal
from types import FrameType

import click

from fersk.cli import _config, _git, handle_errors


def register(group: click.Group) -> None:
    group.add_command(run)


def _terminate(signum: int, frame: FrameType | None) -> None:
    # 转为 SystemExit，使锁在 with 块退出时释放
    raise SystemExit(128 + signum)


# 第一个位置参数之后的内容原样属于用户命令，其中的 -b / -c 等不归 fersk 解析
@click.command(context_settings={
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
})
@click.option(
    "--path", "source_path", default=".",
    type=click.Path(exists=True, file_okay=False), help="源仓库路径（默认当前目录）",
)
@click.option("--branch", "-b", default="", help="检出指定分支（优先于 --commit）")
@click.option("--commit", "-c", default="", help="检出指定提交")
@click.option("--copy-remote", default="", help="把源仓库的该远程配置复制到工作目录")
@click.option("--json", "json_output", is_flag=True, help="命令成功后输出 JSON 结果记录")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@handle_errors
def run(
    source_path: str, branch: str, commit: str, copy_remote: str,
    json_output: bool, command: tuple[str, ...],
) -> None:
    """同步工作目录并在其中执行 COMMAND，COMMAND 之后的参数原样传给它"""
    from fersk.services.repo.sync import WorkspaceSynchronizer
    from fersk.services.run_service import RunRequest, RunService

    synchronizer = WorkspaceSynchronizer(_git(silent=json_output), _config().work_root)
    svc = RunService(synchronizer, progress=click.echo)

    previous = signal.signal(signal.SIGTERM, _terminate)
    try:
        result = svc.execute(RunRequest(
            command=list(command), source_path=source_path,
            branch=branch, commit=commit, copy_remote=copy_remote,
            json_output=json_output,
        ))
    finally:
        signal.signal(signal.SIGTERM, previous)
    if json_output:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
