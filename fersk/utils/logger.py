"""fersk 日志配置

日志统一输出到 stderr，stdout 留给用户命令和 --json 结果记录。
支持人类可读文本和结构化 JSON 两种格式，由环境变量选择:

    FERSK_LOG_LEVEL  日志级别（默认 WARNING）
    FERSK_LOG_JSON   为 "1" 时输出 JSON
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

DEFAULT_LEVEL = "WARNING"
TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(process)d %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """每条记录一行 JSON

    字段: timestamp / level / pid / logger / message / location，
    有异常时追加 exception。pid 用于区分争用同一工作目录的多个 fersk 进程。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "pid": record.process,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = DEFAULT_LEVEL, json_output: bool = False) -> None:
    """配置根日志器，重复调用会先清掉已有 handlers

    参数:
        level: 日志级别名（DEBUG / INFO / WARNING / ERROR），无法识别时退回 WARNING
        json_output: 为 True 时使用 JSONFormatter
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按 FERSK_LOG_LEVEL / FERSK_LOG_JSON 配置日志（CLI 入口调用）"""
    setup_logging(
        level=os.getenv("FERSK_LOG_LEVEL", DEFAULT_LEVEL),
        json_output=os.getenv("FERSK_LOG_JSON", "") == "1",
    )


def reset_logging() -> None:
    """移除并关闭根日志器上的所有 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
