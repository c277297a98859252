"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator
from functools import lru_cache
from typing import Callable, Collection, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import ACCESS_TOKEN_TYPE
from app.packages.library.core.enums import UserRoleEnum
from app.packages.library.core.logger import logger
from app.packages.library.core.security import (
    build_token_payload,
    create_access_token,
    decode_token,
    store_refreshed_token,
)
from app.packages.library.core.session import touch_session
from app.packages.library.crud.users import user_crud
from app.packages.library.db.session import SessionLocal
from app.packages.library.models.user import User
from app.packages.library.services.sse import SSEConnectionRegistry
from app.packages.library.services.storage_backends import ObjectStorage, build_storage

security_scheme = HTTPBearer(auto_error=False)
settings = get_settings()


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def _default_storage() -> ObjectStorage:
    return build_storage(get_settings())


def get_storage() -> ObjectStorage:
    """返回进程内共享的对象存储实例，测试中可通过 dependency_overrides 替换。"""
    return _default_storage()


def get_sse_registry(request: Request) -> SSEConnectionRegistry:
    return request.app.state.sse_registry


def authenticate(db: Session, credentials: Optional[HTTPAuthorizationCredentials]) -> User:
    """校验 ``Authorization`` 凭证并刷新会话，返回对应用户，不存在或非法时抛出 401。"""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="缺少认证信息")

    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="认证类型无效")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")

    user_id = payload.get("user_id")
    session_id = payload.get("sid")
    if user_id is None or session_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效")

    # 软删除的账号查询不到
    user = user_crud.get(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="用户不存在")

    ttl_seconds = max(settings.access_token_expire_minutes, 1) * 60
    if not touch_session(session_id, user.id, ttl_seconds):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")

    # 滑动会话：每次请求签发新令牌，响应阶段放入 meta.access_token
    store_refreshed_token(create_access_token(build_token_payload(user, session_id)))
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    return authenticate(db, credentials)


def ensure_active(user: User) -> User:
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="用户未激活")
    return user


def ensure_role(user: User, allowed: Collection[str]) -> User:
    if user.role not in allowed:
        logger.info("User %s with role %s denied", user.username, user.role)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="权限不足")
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """确保已认证用户仍处于激活状态，否则拒绝访问。"""
    return ensure_active(current_user)


def require_roles(*roles: UserRoleEnum) -> Callable[..., User]:
    """生成角色校验依赖，当前用户角色不在允许范围内时返回 403。"""
    allowed = {role.value for role in roles}

    def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        return ensure_role(current_user, allowed)

    return dependency


require_system_admin = require_roles(UserRoleEnum.SYSTEM_ADMIN)
