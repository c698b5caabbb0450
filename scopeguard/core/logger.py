"""日志配置模块：控制台彩色输出、按天滚动的文件输出与可选的 JSON 结构化输出。

数据权限相关的日志通过 ``scope_extra`` 携带用户、表名与操作类型，
JSON 输出时这些字段会作为独立的键写出，便于按用户或表检索降级记录。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Optional

from .config import get_settings

# 结构化输出时附带的数据权限字段
SCOPE_FIELDS = ("user_id", "table", "operate_type")

_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


def scope_extra(user_id: Any = None, table: Optional[str] = None, operate_type: Any = None) -> dict[str, Any]:
    """构造 ``logger.xxx(..., extra=...)`` 使用的数据权限字段，忽略空值。"""
    values = {"user_id": user_id, "table": table, "operate_type": getattr(operate_type, "value", operate_type)}
    return {key: value for key, value in values.items() if value is not None}


class _TZFormatter(logging.Formatter):
    """按 ``Settings.timezone`` 渲染时间戳。"""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: D401
        moment = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return moment.strftime(datefmt)
        return moment.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """按日志级别着色，非终端输出时自动关闭颜色。"""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{self.RESET}" if color else message


class JsonFormatter(_TZFormatter):
    """每条记录输出一行 JSON，存在数据权限字段时一并写出。"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(
            (key, getattr(record, key)) for key in SCOPE_FIELDS if getattr(record, key, None) is not None
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RequestIdFilter(logging.Filter):
    """把上下文中的请求 ID 写入每条日志记录。"""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = _request_id_ctx.get()
        return True


def _handlers(level: str, use_json: bool, filename: str) -> dict[str, dict[str, Any]]:
    return {
        "console": {
            "level": level,
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else "color",
            "filters": ["request_id"],
        },
        "file": {
            "level": level,
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "json" if use_json else "plain",
            "filename": filename,
            "when": "midnight",
            "backupCount": 14,
            "encoding": "utf-8",
            "delay": True,
            "filters": ["request_id"],
        },
    }


def setup_logging() -> None:
    """初始化日志：``scopeguard`` 与 uvicorn 日志写控制台和文件，其余日志只写控制台。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)
    level = settings.log_level

    own_loggers = {
        name: {"handlers": ["console", "file"], "level": level, "propagate": False}
        for name in ("scopeguard", "uvicorn", "uvicorn.access")
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {
                "color": {"()": ColorFormatter, "fmt": _LINE_FORMAT},
                "plain": {"()": _TZFormatter, "fmt": _LINE_FORMAT},
                "json": {"()": JsonFormatter},
            },
            "handlers": _handlers(level, settings.log_json, str(settings.log_file_path)),
            "loggers": own_loggers,
            "root": {"handlers": ["console"], "level": level},
        }
    )


logger = logging.getLogger("scopeguard")
