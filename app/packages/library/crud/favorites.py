"""收藏 CRUD：用户与教材节点的收藏关联。"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.favorite import UserFavoriteMaterial


class CRUDFavorite(CRUDBase[UserFavoriteMaterial]):
    def get_link(self, db: Session, user_id: int, material_id: int) -> Optional[UserFavoriteMaterial]:
        return (
            self.query(db)
            .filter(
                UserFavoriteMaterial.user_id == user_id,
                UserFavoriteMaterial.lecture_material_id == material_id,
            )
            .first()
        )

    def list_by_user(self, db: Session, user_id: int) -> List[UserFavoriteMaterial]:
        """按收藏时间先后返回用户的收藏记录。"""
        return (
            self.query(db)
            .filter(UserFavoriteMaterial.user_id == user_id)
            .order_by(UserFavoriteMaterial.create_time.asc(), UserFavoriteMaterial.id.asc())
            .all()
        )

    def delete_by_materials(self, db: Session, material_ids: Iterable[int]) -> int:
        tokens = list({int(i) for i in material_ids})
        if not tokens:
            return 0
        return (
            db.query(UserFavoriteMaterial)
            .filter(UserFavoriteMaterial.lecture_material_id.in_(tokens))
            .delete(synchronize_session=False)
        )


favorite_crud = CRUDFavorite(UserFavoriteMaterial)
