"""收藏业务逻辑：按用户维护收藏关联，并输出以收藏节点为根的子树快照。"""

from __future__ import annotations

from typing import Any, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.library.core.constants import HTTP_STATUS_OK
from app.packages.library.core.exceptions import NotFoundError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.crud.favorites import favorite_crud
from app.packages.library.crud.materials import material_crud
from app.packages.library.services.tree_builder import (
    TreeNode,
    build_tree,
    clone_subtree,
    index_forest,
    rebase_subtree,
)


class FavoriteService:
    """收藏的增删均为幂等操作。"""

    def add(self, db: Session, user_id: int, material_id: int) -> dict[str, Any]:
        material = material_crud.get(db, material_id)
        if material is None or not material.is_active:
            raise NotFoundError("教材或文件夹不存在")

        link = favorite_crud.get_link(db, user_id, material_id)
        if link is None:
            try:
                favorite_crud.create(db, {"user_id": user_id, "lecture_material_id": material_id})
            except IntegrityError:
                # 并发请求已写入同一组合
                db.rollback()
            else:
                logger.info("User %s favorited material %s", user_id, material_id)
        return create_response("收藏成功", {"material_id": material_id, "is_favorite": True}, HTTP_STATUS_OK)

    def remove(self, db: Session, user_id: int, material_id: int) -> dict[str, Any]:
        link = favorite_crud.get_link(db, user_id, material_id)
        if link is not None:
            favorite_crud.hard_delete(db, link)
            logger.info("User %s unfavorited material %s", user_id, material_id)
        return create_response("取消收藏成功", {"material_id": material_id, "is_favorite": False}, HTTP_STATUS_OK)

    def list_ids(self, db: Session, user_id: int) -> dict[str, Any]:
        ids = [link.lecture_material_id for link in favorite_crud.list_by_user(db, user_id)]
        return create_response("获取收藏列表成功", ids, HTTP_STATUS_OK)

    def subtree_snapshot(self, db: Session, user_id: int) -> List[TreeNode]:
        """按收藏先后，从当前完整教材树中克隆每个收藏节点的子树并重定基为独立根。

        快照取自包含停用节点的完整教材树，停用的子孙节点同样保留并带有 ``is_active``；
        嵌套的收藏会各自输出一份，不做去重；已被删除的收藏节点跳过。
        """
        index = index_forest(build_tree(material_crud.list_ordered(db)))
        snapshot: List[TreeNode] = []
        for link in favorite_crud.list_by_user(db, user_id):
            node = index.get(link.lecture_material_id)
            if node is None:
                continue
            snapshot.append(rebase_subtree(clone_subtree(node)))
        return snapshot

    def snapshot(self, db: Session, user_id: int) -> dict[str, Any]:
        return create_response("获取收藏树成功", self.subtree_snapshot(db, user_id), HTTP_STATUS_OK)


favorite_service = FavoriteService()
