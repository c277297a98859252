"""用户 CRUD：集中管理账号相关的数据操作。"""

from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.user import User


class CRUDUser(CRUDBase[User]):
    """封装常用的账号查询方法，供业务层复用。"""

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """根据登录账号获取未删除的用户。"""
        return self.query(db).filter(User.username == username).first()

    def list_by_academy(self, db: Session, academy_id: int) -> List[User]:
        return (
            self.query(db)
            .options(selectinload(User.academy))
            .filter(User.academy_id == academy_id)
            .order_by(User.create_time.desc(), User.id.desc())
            .all()
        )


user_crud = CRUDUser(User)
