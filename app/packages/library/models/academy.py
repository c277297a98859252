"""学院模型：加盟学院（校区）信息，删除时仅做软删除。"""

from typing import List, Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import expression

from app.packages.library.models.base import Base, SoftDeleteMixin, TimestampMixin


class Academy(TimestampMixin, SoftDeleteMixin, Base):
    """加盟学院实体，账号通过 `academy_id` 归属于学院。"""

    __tablename__ = "academies"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    campus_name: Mapped[str] = mapped_column(String(100), index=True)
    region: Mapped[str] = mapped_column(String(255), index=True)
    # 010-0000-0000 格式，可为空
    contact_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=expression.true(), index=True)

    users: Mapped[List["User"]] = relationship(
        "User",
        primaryjoin="User.academy_id == Academy.id",
        foreign_keys="User.academy_id",
        back_populates="academy",
    )
