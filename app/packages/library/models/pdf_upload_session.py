"""PDF 上传会话：记录一次预签名上传，转换完成回调到达后标记为完成。"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.library.core.enums import PdfUploadStatusEnum
from app.packages.library.models.base import Base, TimestampMixin, new_uuid


class PdfUploadSession(TimestampMixin, Base):
    __tablename__ = "pdf_upload_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    upload_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, default=new_uuid)
    material_uuid: Mapped[str] = mapped_column(String(36), index=True)
    temp_key: Mapped[str] = mapped_column(String(500))
    original_file_name: Mapped[str] = mapped_column(String(255))
    file_size: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default=PdfUploadStatusEnum.PENDING.value, index=True)
    uploaded_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
