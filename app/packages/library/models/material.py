"""教材树模型：文件夹（category）与教材（book）共用一张邻接表。

存储规则：
- `parent_id` 为空表示根节点，此时 `level` 为 0；否则 `level = 父节点 level + 1`；
- `sort_order` 决定同一父节点下的展示顺序，允许为空，排序与取最大值时按 0 处理；
- `uuid` 在创建时生成且不可变，教材资源存放在对象存储 `book-page/{uuid}/` 下；
- 节点采用物理删除，删除时级联其全部子孙节点以及页面、音频。
"""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import expression

from app.packages.library.core.enums import MaterialTypeEnum
from app.packages.library.models.base import Base, TimestampMixin, UUIDMixin


class LectureMaterial(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "lecture_materials"
    __table_args__ = (
        CheckConstraint("level >= 0", name="level_non_negative"),
        CheckConstraint("parent_id IS NULL OR parent_id <> id", name="no_self_parent"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    folder_name: Mapped[str] = mapped_column(String(100))
    # 邻接表：不建外键约束，缺失的父节点在建树时按根节点处理
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    type: Mapped[str] = mapped_column(
        Enum(
            MaterialTypeEnum,
            name="material_type",
            values_callable=lambda enum: [item.value for item in enum],
            native_enum=False,
            length=20,
        ),
        index=True,
    )
    original_file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    total_pages: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    uploaded_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=expression.true(), nullable=False)
    # 旧版全局收藏标记，已由按用户收藏取代，仅保留读写
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, server_default=expression.false(), nullable=False)

    @property
    def is_book(self) -> bool:
        return MaterialTypeEnum(self.type) is MaterialTypeEnum.BOOK

    @property
    def is_category(self) -> bool:
        return MaterialTypeEnum(self.type) is MaterialTypeEnum.CATEGORY
