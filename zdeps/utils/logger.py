"""zdeps 日志配置

文本格式面向终端，JSON 格式面向 CI。两者都输出到 stderr，
命令结果（install 列表、list 输出等）走 stdout，互不干扰。

环境变量:
    ZDEPS_LOG_LEVEL  日志级别，默认 INFO
    ZDEPS_LOG_JSON   为 1 时输出 JSON

依赖相关日志可通过 extra={"dependency": name} 附带依赖名，
JSON 输出中单独成字段；ZdepsError 异常附带错误码与依赖名。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL_ENV = "ZDEPS_LOG_LEVEL"
LOG_JSON_ENV = "ZDEPS_LOG_JSON"
TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# LogRecord 上可选的上下文字段
CONTEXT_FIELDS = ("dependency", "cache_key")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "zdeps.core.fetcher",
            "message": "拉取依赖 'zap'",
            "dependency": "zap",            (仅在附带时)
            "error_code": "RETRIEVAL_FAILURE", (仅在 ZdepsError 时)
            "exception": "traceback..."     (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value:
                entry[key] = value
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                entry["error_code"] = code
            if getattr(exc, "dependency", "") and "dependency" not in entry:
                entry["dependency"] = exc.dependency
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器（重复调用时替换已有 handler）"""
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def setup_from_env() -> None:
    """按 ZDEPS_LOG_LEVEL / ZDEPS_LOG_JSON 配置日志"""
    setup_logging(
        level=os.getenv(LOG_LEVEL_ENV, "INFO"),
        json_output=os.getenv(LOG_JSON_ENV, "") == "1",
    )


def reset_logging() -> None:
    """移除根日志器上的全部 handler"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
