"""YAML 文件读写

只服务于配置文件：UTF-8、大小上限、顶层必须是映射、原子写入。
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

# 配置文件不应超过 1MB
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """写入同目录的临时文件后 os.replace，读者看不到写了一半的文件

    异常:
        OSError: 目录创建、写入或替换失败（临时文件会被清理）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射

    文件不存在或内容为空时返回 {}。

    异常:
        yaml.YAMLError: 语法错误
        ValueError: 文件超过 MAX_YAML_SIZE，或顶层不是映射
        OSError: 读取失败
    """
    p = Path(path)
    if not p.exists():
        return {}
    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {size} 字节 (上限 {MAX_YAML_SIZE})")

    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"顶层必须是映射，实际为 {type(data).__name__}")
    return data


def dump_yaml(data: Any) -> str:
    """序列化为块格式 YAML，保持键顺序"""
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
