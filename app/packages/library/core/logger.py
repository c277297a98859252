"""日志配置：控制台彩色输出、按天轮转的文件日志与可选的 JSON 格式。

每条日志都会带上当前请求的 ``request_id``；教材相关日志可通过 ``extra``
附带 ``material_id``、``material_uuid`` 与 ``user_id``，JSON 格式会原样输出。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

# 允许通过 extra 写入结构化日志的业务字段
CONTEXT_FIELDS = ("material_id", "material_uuid", "user_id")

# 第三方库默认过于啰嗦
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "multipart")

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class ZonedFormatter(logging.Formatter):
    """按配置时区渲染时间，未指定 datefmt 时输出带毫秒的 ISO-8601。"""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        moment = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return moment.strftime(datefmt)
        return moment.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(ZonedFormatter):
    """按日志级别着色，非终端输出时不附加颜色。"""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{self.RESET}" if color else message


class JsonFormatter(ZonedFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get() or "-"
        return True


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """根据配置生成 ``dictConfig`` 字典。"""
    console_formatter = "json" if settings.log_json else "console"
    handlers = ["console", "file"]
    module = __name__

    def _logger(level: str) -> Dict[str, Any]:
        return {"handlers": handlers, "level": level, "propagate": False}

    loggers = {
        "app": _logger(settings.log_level),
        "uvicorn": _logger(settings.log_level),
        "uvicorn.error": _logger(settings.log_level),
        "uvicorn.access": _logger(settings.log_level),
        "sqlalchemy.engine": _logger("INFO" if settings.database_echo else "WARNING"),
    }
    loggers.update({name: _logger("WARNING") for name in QUIET_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"()": f"{module}.ColorFormatter", "fmt": LOG_FORMAT},
            "plain": {"()": f"{module}.ZonedFormatter", "fmt": LOG_FORMAT},
            "json": {"()": f"{module}.JsonFormatter"},
        },
        "filters": {"request_id": {"()": f"{module}.RequestIdFilter"}},
        "handlers": {
            "console": {
                "level": settings.log_level,
                "class": "logging.StreamHandler",
                "formatter": console_formatter,
                "filters": ["request_id"],
            },
            "file": {
                "level": settings.log_level,
                "class": "logging.handlers.TimedRotatingFileHandler",
                "formatter": "json" if settings.log_json else "plain",
                "filename": str(settings.log_file_path),
                "when": "midnight",
                "backupCount": 14,
                "encoding": "utf-8",
                "delay": True,
                "filters": ["request_id"],
            },
        },
        "loggers": loggers,
        "root": {"handlers": handlers, "level": settings.log_level},
    }


def setup_logging() -> None:
    """初始化日志系统，应用启动时调用一次。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings))


logger = logging.getLogger("app")


def get_logger(name: str) -> logging.Logger:
    """返回 ``app`` 下的子日志器，例如 ``get_logger("storage")``。"""
    return logger.getChild(name)


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
