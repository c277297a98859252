"""认证服务：登录、令牌校验与退出登录。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_OK, HTTP_STATUS_UNAUTHORIZED
from app.packages.library.core.exceptions import AppException, ValidationError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.security import (
    build_token_payload,
    create_access_token,
    store_refreshed_token,
    verify_password,
)
from app.packages.library.core.session import create_session, delete_session
from app.packages.library.core.timezone import now as tz_now
from app.packages.library.crud.users import user_crud
from app.packages.library.models.user import User
from app.packages.library.services.user_service import user_service

INVALID_CREDENTIALS = "账号或密码错误"


class AuthService:
    """已删除或停用的账号与密码错误返回相同的提示。"""

    def login(self, db: Session, *, username: str, password: str) -> dict:
        username = (username or "").strip()
        if not username or not (password or "").strip():
            raise ValidationError("请输入账号和密码")

        user = user_crud.get_by_username(db, username)
        if user is None or not user.is_active or not verify_password(password, user.hashed_password):
            logger.info("Login failed for %s", username)
            raise AppException(INVALID_CREDENTIALS, HTTP_STATUS_UNAUTHORIZED)

        ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
        session_id = create_session(user.id, ttl_seconds)
        access_token = create_access_token(build_token_payload(user, session_id))

        user.last_login_at = tz_now()
        user_crud.save(db, user)

        store_refreshed_token(access_token)
        profile = user_service.build_user_profile(user)["data"]
        return create_response(
            "登录成功",
            {
                "access_token": access_token,
                "token_type": ACCESS_TOKEN_TYPE,
                **profile,
            },
            HTTP_STATUS_OK,
        )

    def verify(self, user: User) -> dict:
        return user_service.build_user_profile(user)

    def logout(self, session_id: Optional[str]) -> dict:
        if session_id:
            delete_session(session_id)
        store_refreshed_token(None)
        return create_response("退出登录成功", None, HTTP_STATUS_OK)


auth_service = AuthService()
