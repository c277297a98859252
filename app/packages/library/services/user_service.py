"""账号业务逻辑：学院账号的查询、创建、修改与软删除，以及个人信息。"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from app.packages.library.core.constants import HTTP_STATUS_CREATED, HTTP_STATUS_OK
from app.packages.library.core.enums import UserRoleEnum
from app.packages.library.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.security import get_password_hash
from app.packages.library.core.session import revoke_user_sessions
from app.packages.library.core.timezone import isoformat
from app.packages.library.crud.academies import academy_crud
from app.packages.library.crud.users import user_crud
from app.packages.library.models.user import User
from app.packages.library.services.academy_service import serialize_academy

# 学院账号可分配的角色
ACADEMY_ROLES = {UserRoleEnum.ACADEMY_ADMIN.value, UserRoleEnum.INSTRUCTOR.value}


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "academy_id": user.academy_id,
        "username": user.username,
        "name": user.name,
        "email": user.email or "",
        "phone_number": user.phone_number or "",
        "role": user.role,
        "is_active": user.is_active,
        "last_login_at": isoformat(user.last_login_at),
        "create_time": isoformat(user.create_time),
        "update_time": isoformat(user.update_time),
    }


def _optional(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


class UserService:
    """登录账号在未删除的账号之间唯一，重复时返回 409。"""

    def build_user_profile(self, user: User) -> dict[str, Any]:
        academy = user.academy if user.academy is not None and not user.academy.is_deleted else None
        data = {
            "user": serialize_user(user),
            "academy": serialize_academy(academy) if academy is not None else None,
        }
        return create_response("获取用户信息成功", data, HTTP_STATUS_OK)

    def list_by_academy(self, db: Session, academy_id: int) -> dict[str, Any]:
        if academy_crud.get(db, academy_id) is None:
            raise NotFoundError("学院不存在")
        data = [serialize_user(item) for item in user_crud.list_by_academy(db, academy_id)]
        return create_response("获取账号列表成功", data, HTTP_STATUS_OK)

    def create_user(
        self,
        db: Session,
        *,
        academy_id: int,
        username: str,
        password: str,
        name: str,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        role: Optional[str] = None,
    ) -> dict[str, Any]:
        username = (username or "").strip()
        if not username or not (password or "").strip() or not (name or "").strip():
            raise ValidationError("账号、密码与姓名不能为空")
        resolved_role = role or UserRoleEnum.ACADEMY_ADMIN.value
        if resolved_role not in ACADEMY_ROLES:
            raise ValidationError("学院账号只能是学院管理员或讲师")
        if academy_crud.get(db, academy_id) is None:
            raise NotFoundError("学院不存在")
        if user_crud.get_by_username(db, username) is not None:
            raise ConflictError("账号已存在")

        user = user_crud.create(
            db,
            {
                "username": username,
                "hashed_password": get_password_hash(password),
                "name": name.strip(),
                "email": _optional(email),
                "phone_number": _optional(phone_number),
                "role": resolved_role,
                "academy_id": academy_id,
                "is_active": True,
            },
        )
        logger.info("User %s created in academy %s", user.username, academy_id)
        return create_response("创建账号成功", serialize_user(user), HTTP_STATUS_CREATED)

    def update_user(
        self,
        db: Session,
        user_id: int,
        *,
        username: str,
        name: str,
        password: Optional[str] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict[str, Any]:
        user = user_crud.get(db, user_id)
        if user is None:
            raise NotFoundError("账号不存在")
        username = (username or "").strip()
        if not username or not (name or "").strip():
            raise ValidationError("账号与姓名不能为空")
        if username != user.username:
            existing = user_crud.get_by_username(db, username)
            if existing is not None and existing.id != user.id:
                raise ConflictError("账号已存在")

        user.username = username
        user.name = name.strip()
        user.email = _optional(email)
        user.phone_number = _optional(phone_number)
        # 密码留空表示不修改
        if password and password.strip():
            user.hashed_password = get_password_hash(password)
        if is_active is not None:
            user.is_active = is_active
        user_crud.save(db, user)
        if not user.is_active:
            revoke_user_sessions(user.id)
        return create_response("修改账号成功", serialize_user(user), HTTP_STATUS_OK)

    def delete_user(self, db: Session, user_id: int, *, current_user: User) -> dict[str, Any]:
        user = user_crud.get(db, user_id)
        if user is None:
            raise NotFoundError("账号不存在")
        if user.id == current_user.id:
            raise ValidationError("不能删除当前登录的账号")
        user_crud.soft_delete(db, user)
        revoke_user_sessions(user.id)
        logger.info("User %s soft-deleted", user_id)
        return create_response("删除账号成功", None, HTTP_STATUS_OK)


user_service = UserService()
