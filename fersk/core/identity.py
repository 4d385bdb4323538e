"""源仓库标识

把规范化后的源仓库路径映射为固定长度的十六进制摘要，
用作工作目录名和锁文件名。SHA-256 保证不同仓库不会误用同一工作目录。
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path


def hash_bytes(data: bytes) -> str:
    """SHA-256 十六进制摘要（64 个小写字符，可直接作为目录名）"""
    return hashlib.sha256(data).hexdigest()


def normalize_path(path: str | Path) -> Path:
    """绝对化并解析符号链接，去掉多余的分隔符"""
    return Path(os.path.expanduser(str(path))).resolve()


def repository_identity(path: str | Path) -> str:
    """计算源仓库路径的标识"""
    return hash_bytes(os.fsencode(str(normalize_path(path))))
