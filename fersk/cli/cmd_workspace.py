"""CLI: 工作目录命令"""

from __future__ import annotations

import click

from fersk.cli import _config, _git, handle_errors
from fersk.services.repo.workspace import WorkspaceManager


def register(group: click.Group) -> None:
    group.add_command(workspaces)


@click.command()
@handle_errors
def workspaces() -> None:
    """列出本地已初始化的工作目录"""
    cfg = _config()
    mgr = WorkspaceManager(cfg.work_root, git=_git(silent=True))
    items = mgr.list_workspaces()
    if not items:
        click.echo(f"没有工作目录 ({cfg.work_root})。")
        return
    for w in items:
        lock = f"locked pid={w.locked_by}" if w.locked_by is not None else "-"
        click.echo(f"  {w.identity[:12]}  commit={w.commit or '-':12s} {lock:18s} {w.source_url or '-'}")
