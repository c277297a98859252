"""音频模型：挂载在页面下的音频附件。"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.library.models.base import Base, TimestampMixin, UUIDMixin


class Audio(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "audios"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    page_id: Mapped[int] = mapped_column(Integer, index=True)
    audio_name: Mapped[str] = mapped_column(String(100))
    original_file_name: Mapped[str] = mapped_column(String(255))
    file_size: Mapped[int] = mapped_column(Integer)
    mime_type: Mapped[str] = mapped_column(String(50))
    # 播放时长（秒）
    duration: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    s3_key: Mapped[str] = mapped_column(String(500), index=True)
    uploaded_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
