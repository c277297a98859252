"""音频 CRUD。"""

from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.audio import Audio


class CRUDAudio(CRUDBase[Audio]):
    def get_by_uuid(self, db: Session, audio_uuid: str) -> Optional[Audio]:
        return self.query(db).filter(Audio.uuid == audio_uuid).first()

    def list_by_page(self, db: Session, page_id: int) -> List[Audio]:
        return (
            self.query(db)
            .filter(Audio.page_id == page_id)
            .order_by(Audio.create_time.desc(), Audio.id.desc())
            .all()
        )

    def next_sort_order(self, db: Session, page_id: int) -> int:
        current = (
            db.query(func.max(func.coalesce(Audio.sort_order, 0)))
            .filter(Audio.page_id == page_id)
            .scalar()
        )
        return 0 if current is None else int(current) + 1

    def delete_by_pages(self, db: Session, page_ids: Iterable[int]) -> int:
        tokens = list({int(i) for i in page_ids})
        if not tokens:
            return 0
        return db.query(Audio).filter(Audio.page_id.in_(tokens)).delete(synchronize_session=False)


audio_crud = CRUDAudio(Audio)
