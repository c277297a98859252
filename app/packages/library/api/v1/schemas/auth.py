"""认证相关的请求与响应模型。"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.packages.library.api.v1.schemas.academies import AcademyItem
from app.packages.library.api.v1.schemas.common import ResponseEnvelope
from app.packages.library.api.v1.schemas.users import UserItem


class LoginRequest(BaseModel):
    """登录请求的字段校验规则。"""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class ProfileData(BaseModel):
    user: UserItem
    academy: Optional[AcademyItem] = None


class TokenResponseData(ProfileData):
    """登录成功后签发的令牌与账号信息。"""

    access_token: str
    token_type: Literal["bearer"]


TokenResponse = ResponseEnvelope[TokenResponseData]
ProfileResponse = ResponseEnvelope[ProfileData]
LogoutResponse = ResponseEnvelope[None]
