"""uiget 日志配置

CLI 输出（组件列表、安装结果）走 stdout，日志统一走 stderr。
文本格式给人看；UIGET_LOG_JSON=1 时每条记录输出一行 JSON，便于 CI 收集。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL_ENV = "UIGET_LOG_LEVEL"
LOG_JSON_ENV = "UIGET_LOG_JSON"
DEFAULT_LEVEL = "WARNING"

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 通过 logger.xxx(..., extra={...}) 附带的上下文字段，JSON 输出时原样带出
CONTEXT_FIELDS = ("registry_id", "component", "url", "path")


class JSONFormatter(logging.Formatter):
    """单行 JSON 日志

    固定字段: timestamp / level / logger / message / module / function / line，
    有异常时追加 exception；记录上存在 CONTEXT_FIELDS 中的属性时一并输出，
    例如拉取清单时的 registry_id 与 url。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = str(value)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def resolve_level(verbose: bool = False) -> str:
    """--verbose > UIGET_LOG_LEVEL > WARNING"""
    if verbose:
        return "DEBUG"
    return os.getenv(LOG_LEVEL_ENV, DEFAULT_LEVEL)


def _clear_handlers(root: logging.Logger) -> None:
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


def setup_logging(level: str = DEFAULT_LEVEL, json_output: bool = False) -> None:
    """配置根日志器（每次调用都替换已有 handler，重复调用不会重复输出）

    参数:
        level: DEBUG / INFO / WARNING / ERROR / CRITICAL，无法识别时按 WARNING
        json_output: True 时使用 JSONFormatter
    """
    root = logging.getLogger()
    _clear_handlers(root)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除根日志器的全部 handler（测试中使用）"""
    _clear_handlers(logging.getLogger())
