"""集中配置管理

配置文件为 YAML，默认位于 $XDG_CONFIG_HOME/fersk/config.yml，
可由 FERSK_CONFIG 指定其他路径。文件不存在时使用默认值。
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fersk.core.exceptions import ConfigError
from fersk.utils.yaml_io import atomic_write, load_yaml

logger = logging.getLogger(__name__)

APP_NAME = "fersk"
CONFIG_FILENAME = "config.yml"

DEFAULT_CONFIG_YAML = """\
# fersk 配置文件
#
# work-path: 所有工作目录和锁文件的根目录
#   每个源仓库对应 <work-path>/<sha256(源仓库路径)>
#   锁文件位于 <work-path>/.locks/
# work-path: ~/.cache/fersk

# git: git 可执行文件
# git: git
"""


def _platform_dir(env_var: str, fallback: str) -> Path:
    xdg = os.environ.get(env_var)
    if xdg:
        return Path(xdg)
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        if local:
            return Path(local)
        return Path.home() / "AppData" / "Local"
    return Path.home() / fallback


def default_work_path() -> Path:
    """默认工作根目录: $XDG_CACHE_HOME/fersk"""
    return _platform_dir("XDG_CACHE_HOME", ".cache") / APP_NAME


def default_config_path() -> Path:
    """配置文件位置: FERSK_CONFIG 优先，否则 $XDG_CONFIG_HOME/fersk/config.yml"""
    override = os.environ.get("FERSK_CONFIG")
    if override:
        return Path(override).expanduser()
    return _platform_dir("XDG_CONFIG_HOME", ".config") / APP_NAME / CONFIG_FILENAME


def _expand_path(value: str) -> str:
    """展开 ~ 和环境变量，相对路径按当前目录转为绝对路径"""
    return str(Path(os.path.expandvars(os.path.expanduser(value))).resolve())


@dataclass
class Config:
    """全局配置"""

    work_path: str = field(default_factory=lambda: str(default_work_path()))
    git: str = "git"

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.work_path = _expand_path(str(self.work_path))

    @property
    def work_root(self) -> Path:
        return Path(self.work_path).resolve()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """从字典构造，键名允许 kebab-case（work-path）"""
        normalized = {str(k).replace("-", "_"): v for k, v in data.items()}
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"extra"}
        matched = {k: v for k, v in normalized.items() if k in known}
        extra = {k: v for k, v in normalized.items() if k not in known}
        for key in ("work_path", "git"):
            if key in matched and not isinstance(matched[key], str):
                raise ConfigError(f"配置项 {key} 必须是字符串")
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> Config:
        """从 YAML 文件加载配置，文件不存在则返回默认值"""
        p = Path(path) if path else default_config_path()
        try:
            data = load_yaml(p)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"读取配置文件失败: {p}: {e}") from e
        env_work_path = os.environ.get("FERSK_WORK_PATH")
        if env_work_path:
            # 覆盖文件中的值，与文件中的值走同一套校验和路径展开
            data = {**data, "work_path": env_work_path}
        return cls.from_dict(data) if data else cls()

    def to_dict(self) -> dict:
        return asdict(self)


def write_default_config(path: str | Path | None = None, *, force: bool = False) -> Path:
    """写出默认配置文件，已存在且未指定 force 时不覆盖"""
    p = Path(path) if path else default_config_path()
    if p.exists() and not force:
        logger.info("配置文件已存在，跳过: %s", p)
        return p
    try:
        atomic_write(p, DEFAULT_CONFIG_YAML)
    except OSError as e:
        raise ConfigError(f"写入配置文件失败: {p}: {e}") from e
    logger.info("已写出默认配置: %s", p)
    return p


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则从默认位置加载）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config.from_file()
    return _current


def init_config(path: str | Path | None = None) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path or default_config_path())
    return _current
