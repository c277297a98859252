"""页面模型：教材 PDF 转换后的单页图片记录。"""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.library.models.base import Base, TimestampMixin, UUIDMixin


class Page(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("lecture_material_id", "page_number", name="uq_pages_material_page_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    lecture_material_id: Mapped[int] = mapped_column(Integer, index=True)
    page_number: Mapped[int] = mapped_column(Integer)
    # 例如 page-001.webp
    file_name: Mapped[str] = mapped_column(String(255))
    s3_key: Mapped[str] = mapped_column(String(500), index=True)
