"""学院请求与响应模型。"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.packages.library.api.v1.schemas.common import ResponseEnvelope


class AcademyCreateRequest(BaseModel):
    campus_name: str = Field(..., min_length=2, max_length=100)
    region: str = Field(..., min_length=2, max_length=255)
    contact_number: Optional[str] = Field(default=None, max_length=20, description="格式 010-0000-0000")


class AcademyUpdateRequest(AcademyCreateRequest):
    is_active: Optional[bool] = None


class AcademyItem(BaseModel):
    id: int
    campus_name: str
    region: str
    contact_number: str = ""
    is_active: bool
    create_time: Optional[str] = None
    update_time: Optional[str] = None


AcademyResponse = ResponseEnvelope[AcademyItem]
AcademyListResponse = ResponseEnvelope[List[AcademyItem]]
AcademyDeleteResponse = ResponseEnvelope[None]
