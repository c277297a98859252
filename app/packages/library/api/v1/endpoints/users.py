"""学院账号管理路由，仅系统管理员可访问。"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.users import (
    UserCreateRequest,
    UserDeleteResponse,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from app.packages.library.core.dependencies import get_db, require_system_admin
from app.packages.library.models.user import User
from app.packages.library.services.user_service import user_service

router = APIRouter(tags=["users"])


@router.get("/academies/{academy_id}/users", response_model=UserListResponse)
def list_academy_users(
    academy_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> UserListResponse:
    return user_service.list_by_academy(db, academy_id)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> UserResponse:
    """创建学院账号，默认角色为学院管理员。"""
    return user_service.create_user(
        db,
        academy_id=payload.academy_id,
        username=payload.username,
        password=payload.password,
        name=payload.name,
        email=payload.email,
        phone_number=payload.phone_number,
        role=payload.role.value if payload.role else None,
    )


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> UserResponse:
    return user_service.update_user(
        db,
        user_id,
        username=payload.username,
        name=payload.name,
        password=payload.password,
        email=payload.email,
        phone_number=payload.phone_number,
        is_active=payload.is_active,
    )


@router.delete("/users/{user_id}", response_model=UserDeleteResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_system_admin),
) -> UserDeleteResponse:
    return user_service.delete_user(db, user_id, current_user=current_user)
