"""教材树 CRUD：节点查询、兄弟节点排序值与子孙收集。"""

from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.material import LectureMaterial


def _sort_key():
    return func.coalesce(LectureMaterial.sort_order, 0)


class CRUDLectureMaterial(CRUDBase[LectureMaterial]):
    """提供教材树节点的便捷查询方法。"""

    def get_by_uuid(self, db: Session, material_uuid: str) -> Optional[LectureMaterial]:
        return self.query(db).filter(LectureMaterial.uuid == material_uuid).first()

    def list_ordered(self, db: Session, *, active_only: bool = False) -> List[LectureMaterial]:
        """按 level、sort_order（空值视为 0）、id 排序返回节点，供建树使用。"""
        query = self.query(db)
        if active_only:
            query = query.filter(LectureMaterial.is_active.is_(True))
        return query.order_by(
            LectureMaterial.level.asc(),
            _sort_key().asc(),
            LectureMaterial.id.asc(),
        ).all()

    def list_children(self, db: Session, parent_ids: Iterable[int]) -> List[LectureMaterial]:
        tokens = {int(i) for i in parent_ids if i is not None}
        if not tokens:
            return []
        return self.query(db).filter(LectureMaterial.parent_id.in_(tokens)).all()

    def max_sibling_sort_order(
        self,
        db: Session,
        parent_id: Optional[int],
        *,
        exclude_id: Optional[int] = None,
    ) -> Optional[int]:
        """返回指定父节点下兄弟节点的最大排序值，没有兄弟节点时返回 ``None``。"""
        query = db.query(func.max(_sort_key()))
        if parent_id is None:
            query = query.filter(LectureMaterial.parent_id.is_(None))
        else:
            query = query.filter(LectureMaterial.parent_id == parent_id)
        if exclude_id is not None:
            query = query.filter(LectureMaterial.id != exclude_id)
        return query.scalar()

    def collect_descendants(self, db: Session, root_id: int) -> List[LectureMaterial]:
        """逐层收集子孙节点（不含根节点），已访问集合防止环形数据导致死循环。"""
        visited = {root_id}
        frontier = [root_id]
        collected: List[LectureMaterial] = []
        while frontier:
            next_frontier: List[int] = []
            for child in self.list_children(db, frontier):
                if child.id in visited:
                    continue
                visited.add(child.id)
                collected.append(child)
                next_frontier.append(child.id)
            frontier = next_frontier
        return collected

    def delete_by_ids(self, db: Session, ids: Iterable[int]) -> int:
        tokens = list({int(i) for i in ids})
        if not tokens:
            return 0
        return (
            db.query(LectureMaterial)
            .filter(LectureMaterial.id.in_(tokens))
            .delete(synchronize_session=False)
        )


material_crud = CRUDLectureMaterial(LectureMaterial)
