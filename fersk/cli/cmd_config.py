"""CLI: 配置命令"""

from __future__ import annotations

import click

from fersk.cli import _config, handle_errors
from fersk.core.config import write_default_config
from fersk.utils.yaml_io import dump_yaml


def register(group: click.Group) -> None:
    group.add_command(generate_config)
    group.add_command(show_config)


@click.command(name="generate-config")
@click.option("--force", is_flag=True, help="覆盖已有配置文件")
@click.pass_context
@handle_errors
def generate_config(ctx: click.Context, force: bool) -> None:
    """生成默认配置文件"""
    path = write_default_config(ctx.obj.get("config_path"), force=force)
    click.echo(f"配置文件: {path}")


@click.command(name="config")
def show_config() -> None:
    """显示当前生效的配置"""
    cfg = _config().to_dict()
    if not cfg.get("extra"):
        cfg.pop("extra", None)
    click.echo(dump_yaml(cfg), nl=False)
