"""CRUD 基类：为各实体提供通用的数据访问方法。"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.packages.library.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """封装常见的查询、创建与保存逻辑，减少重复代码。

    ``auto_commit=False`` 时仅 flush，事务边界交由服务层控制。
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return self.query(db).filter(self.model.id == id).first()

    def create(self, db: Session, obj_in: Dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        self._finish(db, db_obj, auto_commit)
        return db_obj

    def save(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        db.add(db_obj)
        self._finish(db, db_obj, auto_commit)
        return db_obj

    def soft_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        """执行软删除，如果模型支持软删除字段则仅标记。"""
        if hasattr(db_obj, "is_deleted"):
            setattr(db_obj, "is_deleted", True)
            db.add(db_obj)
        else:
            db.delete(db_obj)
        self._finish(db, db_obj, auto_commit)
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        """物理删除行；提交失败时回滚并继续抛出。"""
        db.delete(db_obj)
        if auto_commit:
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise
        else:
            db.flush()

    def query(self, db: Session, *, include_deleted: bool = False):
        """统一构造查询，默认过滤软删除记录。"""
        query = db.query(self.model)
        if hasattr(self.model, "is_deleted") and not include_deleted:
            query = query.filter(self.model.is_deleted.is_(False))
        return query

    @staticmethod
    def _finish(db: Session, db_obj: ModelType, auto_commit: bool) -> None:
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
