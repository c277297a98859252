"""业务包元数据定义。"""

from __future__ import annotations

from dataclasses import dataclass
from logging import Logger
from typing import Any, Callable

from fastapi import APIRouter


@dataclass(frozen=True)
class AppPackage:
    """描述一个业务包暴露给主应用的必要接口。"""

    name: str
    api_router: APIRouter
    get_settings: Callable[[], Any]
    setup_logging: Callable[[], None]
    logger: Logger
    init_db: Callable[[], None]
    create_response: Callable[..., dict]
    http_exception_handler: Callable[..., Any]
    validation_exception_handler: Callable[..., Any]
    generic_exception_handler: Callable[..., Any]
    # 进程级 SSE 连接注册表的构造函数，应用启动时调用一次
    create_sse_registry: Callable[[], Any]
