"""PDF、音频上传与转换回调的请求与响应模型。"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.packages.library.api.v1.schemas.common import ResponseEnvelope


class PdfUploadUrlRequest(BaseModel):
    uuid: str = Field(..., min_length=1, max_length=36)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)


class PdfUploadUrlData(BaseModel):
    presigned_url: str
    temp_key: str
    upload_id: str
    expires_in: int


class ConvertedPage(BaseModel):
    """转换函数回调的页面条目，兼容驼峰字段名。"""

    model_config = ConfigDict(populate_by_name=True)

    page_number: int = Field(..., ge=1, alias="pageNumber")
    file_name: str = Field(..., alias="fileName")
    s3_key: str = Field(..., alias="s3Key")


class ConversionCompleteRequest(BaseModel):
    uuid: str
    pages: List[ConvertedPage]


class ConversionCompleteData(BaseModel):
    material_id: int
    total_pages: int
    notified: bool


class AudioUploadUrlRequest(BaseModel):
    page_id: int
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)
    audio_name: str = Field(..., min_length=2, max_length=100)
    duration: Optional[float] = Field(default=None, ge=0)


class AudioUploadUrlData(BaseModel):
    presigned_url: str
    audio_uuid: str
    s3_key: str


class AudioItem(BaseModel):
    id: int
    uuid: str
    page_id: int
    audio_name: str
    original_file_name: str
    file_size: int
    mime_type: str
    duration: Optional[float] = None
    s3_key: str
    sort_order: Optional[int] = None
    create_time: Optional[str] = None


class AudioDeleteData(BaseModel):
    deleted_audio_name: str
    deleted_s3_key: str


class HtmlLayerUploadRequest(BaseModel):
    html_content: str = Field(..., min_length=1)


class HtmlLayerUploadData(BaseModel):
    page_uuid: str
    s3_key: str
    page_number: int


class HtmlLayerData(BaseModel):
    page_uuid: str
    html_content: str
    has_file: bool
    page_number: int


PdfUploadUrlResponse = ResponseEnvelope[PdfUploadUrlData]
ConversionCompleteResponse = ResponseEnvelope[ConversionCompleteData]
AudioUploadUrlResponse = ResponseEnvelope[AudioUploadUrlData]
AudioListResponse = ResponseEnvelope[List[AudioItem]]
AudioDeleteResponse = ResponseEnvelope[AudioDeleteData]
HtmlLayerUploadResponse = ResponseEnvelope[HtmlLayerUploadData]
HtmlLayerResponse = ResponseEnvelope[HtmlLayerData]
