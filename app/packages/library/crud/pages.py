"""页面 CRUD：教材页面的批量写入与查询。"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.page import Page


class CRUDPage(CRUDBase[Page]):
    def get_by_uuid(self, db: Session, page_uuid: str) -> Optional[Page]:
        return self.query(db).filter(Page.uuid == page_uuid).first()

    def list_by_material(self, db: Session, material_id: int) -> List[Page]:
        return (
            self.query(db)
            .filter(Page.lecture_material_id == material_id)
            .order_by(Page.page_number.asc())
            .all()
        )

    def count_by_material(self, db: Session, material_id: int) -> int:
        return self.query(db).filter(Page.lecture_material_id == material_id).count()

    def ids_by_materials(self, db: Session, material_ids: Iterable[int]) -> List[int]:
        tokens = {int(i) for i in material_ids}
        if not tokens:
            return []
        rows = db.query(Page.id).filter(Page.lecture_material_id.in_(tokens)).all()
        return [row[0] for row in rows]

    def bulk_create(self, db: Session, items: Iterable[dict]) -> List[Page]:
        """批量插入页面，仅 flush，由调用方提交。"""
        pages = [Page(**item) for item in items]
        db.add_all(pages)
        db.flush()
        return pages

    def delete_by_materials(self, db: Session, material_ids: Iterable[int]) -> int:
        tokens = list({int(i) for i in material_ids})
        if not tokens:
            return 0
        return (
            db.query(Page)
            .filter(Page.lecture_material_id.in_(tokens))
            .delete(synchronize_session=False)
        )


page_crud = CRUDPage(Page)
