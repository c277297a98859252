"""安全模块：密码哈希与两类 JWT。

- 访问令牌：携带 ``iss`` 与会话 ``sid``，由认证依赖校验；
- 对象令牌：本地存储签名直链使用，携带 ``purpose=storage-object``，不绑定会话。

滑动会话每次请求都会签发新的访问令牌。依赖函数运行在线程池中，上下文变量的
修改不会回传，因此中间件在请求开始时放入一个可变槽位，依赖写入、响应阶段读取。
"""

from contextvars import ContextVar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .logger import logger

OBJECT_TOKEN_PURPOSE = "storage-object"

_refreshed_token_slot: ContextVar[Optional[Dict[str, Optional[str]]]] = ContextVar("refreshed_token_slot", default=None)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 存储值不是合法的 bcrypt 哈希
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _sign(claims: Dict[str, Any], lifetime: timedelta) -> str:
    settings = get_settings()
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """签发访问令牌，默认有效期取 ``ACCESS_TOKEN_EXPIRE_MINUTES``。"""
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _sign({**subject, "iss": settings.jwt_issuer}, lifetime)


def create_object_token(claims: Dict[str, Any], *, expires_seconds: int = 600) -> str:
    """签发本地存储直链令牌，有效期至少 1 秒。"""
    lifetime = timedelta(seconds=max(int(expires_seconds or 0), 1))
    return _sign({**claims, "purpose": OBJECT_TOKEN_PURPOSE}, lifetime)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析访问令牌，签名、过期时间或签发方不符时返回 ``None``。"""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        logger.warning("Failed to decode access token: %s", exc)
        return None


def decode_object_token(token: str) -> Optional[Dict[str, Any]]:
    """解析直链令牌；访问令牌或已过期的令牌都返回 ``None``。"""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.warning("Failed to verify object token: %s", exc)
        return None
    if claims.get("purpose") != OBJECT_TOKEN_PURPOSE:
        return None
    return claims


def build_token_payload(user: Any, session_id: str) -> Dict[str, Any]:
    """组装访问令牌载荷；学院账号额外携带 ``academy_id``。"""
    payload: Dict[str, Any] = {"user_id": user.id, "username": user.username, "role": user.role, "sid": session_id}
    if getattr(user, "academy_id", None) is not None:
        payload["academy_id"] = user.academy_id
    return payload


def open_refreshed_token_slot() -> None:
    """在请求开始时调用，之后线程池中的依赖写入的令牌对本请求可见。"""
    _refreshed_token_slot.set({})


def store_refreshed_token(token: Optional[str]) -> None:
    slot = _refreshed_token_slot.get()
    if slot is None:
        slot = {}
        _refreshed_token_slot.set(slot)
    slot["token"] = token


def consume_refreshed_token() -> Optional[str]:
    slot = _refreshed_token_slot.get()
    return slot.get("token") if slot else None
