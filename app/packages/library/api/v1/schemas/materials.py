"""教材树请求与响应模型。"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.packages.library.api.v1.schemas.common import ResponseEnvelope
from app.packages.library.core.enums import MaterialTypeEnum


class MaterialCreateRequest(BaseModel):
    """名称与类型的合法性由业务层校验，统一返回 400。"""

    folder_name: Optional[str] = None
    type: Optional[str] = None
    parent_id: Optional[int] = None


class MaterialUpdateRequest(BaseModel):
    """``parent_id`` 出现在请求体中即视为移动，显式 null 或空字符串表示移动到根。"""

    folder_name: Optional[str] = None
    is_active: Optional[bool] = None
    is_favorite: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, ge=0)
    parent_id: Optional[int] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_means_root(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class MaterialNode(BaseModel):
    id: int
    uuid: str
    folder_name: str
    parent_id: Optional[int] = None
    level: int
    sort_order: Optional[int] = None
    type: MaterialTypeEnum
    is_active: bool
    is_favorite: bool
    total_pages: Optional[int] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    children: List["MaterialNode"] = Field(default_factory=list)


class MaterialDeleteData(BaseModel):
    deleted_ids: List[int]
    deleted_folders: List[str]


class PageItem(BaseModel):
    id: int
    uuid: str
    page_number: int
    file_name: str
    s3_key: str
    image_url: Optional[str] = None


class MaterialDetail(BaseModel):
    id: int
    uuid: str
    name: str
    total_pages: Optional[int] = None
    pages: List[PageItem]


MaterialNode.model_rebuild()

MaterialTreeResponse = ResponseEnvelope[List[MaterialNode]]
MaterialResponse = ResponseEnvelope[MaterialNode]
MaterialDeleteResponse = ResponseEnvelope[MaterialDeleteData]
MaterialDetailResponse = ResponseEnvelope[MaterialDetail]
