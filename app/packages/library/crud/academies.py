"""学院 CRUD：管理学院相关的数据库操作。"""

from typing import List

from sqlalchemy.orm import Session

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.academy import Academy


class CRUDAcademy(CRUDBase[Academy]):
    """提供学院实体的便捷查询方法，默认排除已软删除的记录。"""

    def list_all(self, db: Session) -> List[Academy]:
        return self.query(db).order_by(Academy.create_time.desc(), Academy.id.desc()).all()


academy_crud = CRUDAcademy(Academy)
