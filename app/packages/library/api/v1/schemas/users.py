"""账号请求与响应模型。"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.packages.library.api.v1.schemas.common import ResponseEnvelope
from app.packages.library.core.enums import UserRoleEnum


class UserCreateRequest(BaseModel):
    academy_id: int
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    role: Optional[UserRoleEnum] = None


class UserUpdateRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    # 留空表示不修改密码
    password: Optional[str] = Field(default=None, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    is_active: Optional[bool] = None


class UserItem(BaseModel):
    id: int
    academy_id: Optional[int] = None
    username: str
    name: str
    email: str = ""
    phone_number: str = ""
    role: str
    is_active: bool
    last_login_at: Optional[str] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None


UserResponse = ResponseEnvelope[UserItem]
UserListResponse = ResponseEnvelope[List[UserItem]]
UserDeleteResponse = ResponseEnvelope[None]
