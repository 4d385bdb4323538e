"""fersk 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable
from typing import Any, TypeVar

import click

from fersk import __version__
from fersk.core.config import Config, get_config, init_config
from fersk.core.exceptions import FerskError
from fersk.services.repo.git import GitAdapter
from fersk.utils.logger import setup_logging_from_env

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _config() -> Config:
    """获取当前配置的快捷方式"""
    return get_config()


def _git(silent: bool = False) -> GitAdapter:
    return GitAdapter(git=_config().git, silent=silent)


def handle_errors(func: F) -> F:
    """把 FerskError 转为一行错误提示和对应的退出码"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except FerskError as e:
            logger.debug("命令失败", exc_info=True)
            click.echo(f"错误: {e}", err=True)
            sys.exit(e.exit_code)

    return wrapper  # type: ignore[return-value]


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", default=None, type=click.Path(dir_okay=False),
    help="配置文件路径（默认 $XDG_CONFIG_HOME/fersk/config.yml）",
)
@click.pass_context
@handle_errors
def main(ctx: click.Context, config_path: str | None) -> None:
    """fersk - 在源仓库的隔离副本中执行命令"""
    setup_logging_from_env()
    ctx.ensure_object(dict)["config_path"] = config_path
    init_config(config_path)


# 注册各领域子命令
from fersk.cli.cmd_run import register as _reg_run  # noqa: E402
from fersk.cli.cmd_config import register as _reg_config  # noqa: E402
from fersk.cli.cmd_workspace import register as _reg_workspace  # noqa: E402

_reg_run(main)
_reg_config(main)
_reg_workspace(main)
