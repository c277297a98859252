"""收藏关联表：用户与教材树节点的多对多关系，同一组合只保留一行。"""

from sqlalchemy import Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.library.models.base import Base, TimestampMixin


class UserFavoriteMaterial(TimestampMixin, Base):
    __tablename__ = "user_favorite_materials"
    __table_args__ = (
        UniqueConstraint("user_id", "lecture_material_id", name="uq_user_favorite_materials_user_material"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    lecture_material_id: Mapped[int] = mapped_column(Integer, index=True)
