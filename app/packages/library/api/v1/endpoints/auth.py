"""认证相关路由定义。"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.auth import (
    LoginRequest,
    LogoutResponse,
    ProfileResponse,
    TokenResponse,
)
from app.packages.library.core.dependencies import get_current_active_user, get_db, security_scheme
from app.packages.library.core.security import decode_token
from app.packages.library.models.user import User
from app.packages.library.services.auth_service import auth_service
from app.packages.library.services.user_service import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, username=payload.username, password=payload.password)


@router.post("/verify", response_model=ProfileResponse)
def verify(current_user: User = Depends(get_current_active_user)) -> ProfileResponse:
    """校验令牌有效性并返回账号与所属学院信息。"""
    return auth_service.verify(current_user)


@router.get("/profile", response_model=ProfileResponse)
def read_profile(current_user: User = Depends(get_current_active_user)) -> ProfileResponse:
    return user_service.build_user_profile(current_user)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    current_user: User = Depends(get_current_active_user),
) -> LogoutResponse:
    """退出登录并删除服务端会话，前端需同时清除本地令牌。"""
    # 依赖在线程池中执行，上下文变量不会回传，这里直接从令牌读取会话 ID
    payload = decode_token(credentials.credentials) if credentials else None
    return auth_service.logout((payload or {}).get("sid"))
