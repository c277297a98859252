"""时区工具：按配置时区生成当前时间，并把数据库时间序列化给前端。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from app.packages.library.core.config import get_settings


def now() -> datetime:
    """返回配置时区下的当前时间。"""
    return datetime.now(get_settings().timezone_info)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """转换为配置时区的 ISO-8601 字符串；SQLite 返回的无时区时间按 UTC 处理。"""
    if value is None:
        return None
    tz = get_settings().timezone_info
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).isoformat()
