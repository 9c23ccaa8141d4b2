"""nest 日志配置

面向用户的进度走 click.echo，诊断信息（git 命令、同步细节、符号链接操作）
走 logging，统一输出到 stderr。环境变量:

    NEST_LOG_LEVEL   日志级别，覆盖配置文件中的 log_level
    NEST_LOG_JSON=1  输出 JSON 行，便于脚本或 CI 解析
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL_ENV = "NEST_LOG_LEVEL"
LOG_JSON_ENV = "NEST_LOG_JSON"

_TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """每条记录输出一行 JSON；异常带业务错误码时附加 error_code"""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                entry["error_code"] = code
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """配置根日志器（重复调用只保留一个 handler）

    无法识别的级别按 WARNING 处理。
    """
    reset_logging()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)


def setup_logging_from_env(default_level: str = "WARNING") -> str:
    """按环境变量配置日志，返回生效的级别名"""
    level = os.getenv(LOG_LEVEL_ENV) or default_level
    setup_logging(level, json_output=os.getenv(LOG_JSON_ENV, "") == "1")
    return logging.getLevelName(logging.getLogger().level)


def reset_logging() -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
