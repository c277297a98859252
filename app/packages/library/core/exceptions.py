"""异常处理模块：定义统一的业务异常与响应格式。

业务异常分为四类，均继承 ``AppException``，在全局处理器中转换为统一响应体：

- ``ValidationError``：输入缺失或格式不合法（400）；
- ``NotFoundError``：引用的实体不存在（404）；
- ``ConflictError``：违反唯一约束，例如登录账号重复（409）；
- ``StorageError`` / ``PersistenceError``：外部协作方失败（502 / 500）。

同时涉及数据库与对象存储的操作只能回滚数据库一侧，已经完成的对象存储
删除无法撤销，调用方需要知晓这一不对称性。
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.packages.library.core.logger import logger
from app.packages.library.core.security import consume_refreshed_token


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.msg = msg
        self.data = data


class ValidationError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_400_BAD_REQUEST, data)


class NotFoundError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_404_NOT_FOUND, data)


class ConflictError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_409_CONFLICT, data)


class StorageError(AppException):
    """对象存储调用失败。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_502_BAD_GATEWAY, data)


class PersistenceError(AppException):
    """数据库事务失败，事务已回滚。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_500_INTERNAL_SERVER_ERROR, data)


def _envelope(status_code: int, msg: Any, data: Any = None, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    payload: Dict[str, Any] = {"msg": msg, "data": data, "code": status_code}
    token = consume_refreshed_token()
    if token:
        payload["meta"] = {"access_token": token}
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


def _jsonable(obj: Any) -> Any:
    # pydantic 的错误上下文里可能夹带异常实例
    if isinstance(obj, Exception):
        return str(obj)
    if isinstance(obj, dict):
        return {key: _jsonable(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(item) for item in obj]
    return obj


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """``HTTPException`` 及其子类 ``AppException`` 统一转换为响应体。"""
    return _envelope(exc.status_code, exc.detail, getattr(exc, "data", None), getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, "请求参数验证失败", _jsonable(exc.errors()))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "服务器内部错误")
