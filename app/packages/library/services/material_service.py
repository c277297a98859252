"""教材树业务逻辑：树形查询、节点创建、修改（含移动）与级联删除。"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import HTTP_STATUS_CREATED, HTTP_STATUS_OK
from app.packages.library.core.enums import MaterialTypeEnum
from app.packages.library.core.exceptions import (
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.crud.audios import audio_crud
from app.packages.library.crud.favorites import favorite_crud
from app.packages.library.crud.materials import material_crud
from app.packages.library.crud.pages import page_crud
from app.packages.library.models.material import LectureMaterial
from app.packages.library.services.storage_backends import ObjectStorage, book_folder_key
from app.packages.library.services.tree_builder import build_tree, serialize_material

MAX_FOLDER_NAME_LENGTH = 100

# 请求体中未出现 parent_id 与显式传入 null 需要区分
UNSET: Any = object()


def _normalize_name(folder_name: Optional[str]) -> str:
    name = (folder_name or "").strip()
    if not name:
        raise ValidationError("名称不能为空")
    if len(name) > MAX_FOLDER_NAME_LENGTH:
        raise ValidationError(f"名称长度不能超过 {MAX_FOLDER_NAME_LENGTH} 个字符")
    return name


def _normalize_type(value: Any) -> MaterialTypeEnum:
    if value is None or value == "":
        raise ValidationError("类型不能为空")
    try:
        return MaterialTypeEnum(getattr(value, "value", value))
    except ValueError as exc:
        raise ValidationError("类型只能是 category 或 book") from exc


class MaterialService:
    """封装教材树节点的增删改查。"""

    def list_tree(self, db: Session, *, active_only: bool = False) -> dict[str, Any]:
        """返回教材森林；用户侧仅包含启用的节点。"""
        materials = material_crud.list_ordered(db, active_only=active_only)
        return create_response("获取教材树成功", build_tree(materials), HTTP_STATUS_OK)

    def create(
        self,
        db: Session,
        *,
        folder_name: Optional[str],
        type: Any,
        parent_id: Optional[int] = None,
        uploaded_by: Optional[int] = None,
    ) -> dict[str, Any]:
        name = _normalize_name(folder_name)
        material_type = _normalize_type(type)

        level = 0
        if parent_id is not None:
            parent = material_crud.get(db, parent_id)
            if parent is None:
                raise NotFoundError("上级文件夹不存在")
            level = parent.level + 1

        material = material_crud.create(
            db,
            {
                "folder_name": name,
                "type": material_type.value,
                "parent_id": parent_id,
                "level": level,
                "sort_order": None,
                "is_active": True,
                "is_favorite": False,
                "uploaded_by": uploaded_by,
            },
        )
        logger.info("Material %s (%s) created under parent %s", material.id, material_type.value, parent_id)
        return create_response("创建成功", serialize_material(material), HTTP_STATUS_CREATED)

    def update(self, db: Session, material_id: int, fields: Dict[str, Any], parent_id: Any = UNSET) -> dict[str, Any]:
        """修改节点字段；传入 ``parent_id``（包括 ``None``）时按移动处理。"""
        material = material_crud.get(db, material_id)
        if material is None:
            raise NotFoundError("教材或文件夹不存在")

        if "folder_name" in fields and fields["folder_name"] is not None:
            material.folder_name = _normalize_name(fields["folder_name"])
        for attr in ("is_active", "is_favorite"):
            if fields.get(attr) is not None:
                setattr(material, attr, bool(fields[attr]))
        if "sort_order" in fields:
            sort_order = fields["sort_order"]
            if sort_order is not None and int(sort_order) < 0:
                raise ValidationError("排序值不能为负数")
            material.sort_order = sort_order

        if parent_id is not UNSET:
            self._move(db, material, parent_id or None)

        try:
            db.add(material)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Update material %s failed: %s", material_id, exc)
            raise PersistenceError("保存教材失败") from exc
        db.refresh(material)
        return create_response("修改成功", serialize_material(material), HTTP_STATUS_OK)

    def _move(self, db: Session, material: LectureMaterial, new_parent_id: Optional[int]) -> None:
        if new_parent_id == material.parent_id:
            return

        if new_parent_id is None:
            new_level = 0
        else:
            target = material_crud.get(db, new_parent_id)
            if target is None:
                raise NotFoundError("目标文件夹不存在")
            if not target.is_category:
                raise ValidationError("只能移动到文件夹下")
            descendants = material_crud.collect_descendants(db, material.id)
            if target.id == material.id or target.id in {item.id for item in descendants}:
                raise ValidationError("不能移动到自身或其子节点下")
            new_level = target.level + 1

        current_max = material_crud.max_sibling_sort_order(db, new_parent_id, exclude_id=material.id)
        delta = new_level - material.level
        material.parent_id = new_parent_id
        material.level = new_level
        material.sort_order = 0 if current_max is None else int(current_max) + 1

        # 子孙节点随之平移层级
        if delta:
            for item in material_crud.collect_descendants(db, material.id):
                item.level = item.level + delta
                db.add(item)
        logger.info("Material %s moved under %s (level %s)", material.id, new_parent_id, new_level)

    def delete(self, db: Session, material_id: int, storage: ObjectStorage) -> dict[str, Any]:
        """物理删除节点及全部子孙。

        教材（book）的对象存储文件夹在线程池中与数据库删除并行执行；存储失败时
        回滚数据库并抛出 ``StorageError``，已完成的存储删除无法撤销。
        """
        material = material_crud.get(db, material_id)
        if material is None:
            raise NotFoundError("教材或文件夹不存在")

        descendants = material_crud.collect_descendants(db, material.id)
        doomed: List[LectureMaterial] = [material, *descendants]
        doomed_ids = [item.id for item in doomed]
        folders = [book_folder_key(item.uuid) for item in doomed if item.is_book]

        settings = get_settings()
        workers = max(1, min(settings.storage_delete_workers, len(folders) or 1))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="storage-delete") as executor:
            futures = [executor.submit(storage.delete_folder, prefix) for prefix in folders]
            try:
                page_ids = page_crud.ids_by_materials(db, doomed_ids)
                audio_crud.delete_by_pages(db, page_ids)
                page_crud.delete_by_materials(db, doomed_ids)
                favorite_crud.delete_by_materials(db, doomed_ids)
                material_crud.delete_by_ids(db, [item.id for item in descendants])
                material_crud.delete_by_ids(db, [material.id])
                db.flush()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error("Delete material %s failed: %s", material_id, exc)
                raise PersistenceError("删除教材失败") from exc

            failures = []
            for prefix, future in zip(folders, futures):
                exc = future.exception()
                if exc is not None:
                    failures.append((prefix, exc))

        if failures:
            db.rollback()
            for prefix, exc in failures:
                logger.error("Storage folder %s delete failed: %s", prefix, exc)
            raise StorageError("删除对象存储文件失败", data={"folders": [prefix for prefix, _ in failures]}) from failures[0][1]

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Commit delete material %s failed: %s", material_id, exc)
            raise PersistenceError("删除教材失败") from exc

        logger.info(
            "Material %s deleted with %d descendants, %d storage folders removed",
            material_id,
            len(descendants),
            len(folders),
            extra={"material_id": material_id},
        )
        return create_response(
            "删除成功",
            {"deleted_ids": doomed_ids, "deleted_folders": folders},
            HTTP_STATUS_OK,
        )

    def get_detail(self, db: Session, material_id: int, storage: ObjectStorage) -> dict[str, Any]:
        """返回启用状态教材的详情与按页码排序的页面。"""
        material = material_crud.get(db, material_id)
        if material is None or not material.is_active or not material.is_book:
            raise NotFoundError("教材不存在")

        expires_in = get_settings().presigned_url_expire_seconds
        pages = [
            {
                "id": page.id,
                "uuid": page.uuid,
                "page_number": page.page_number,
                "file_name": page.file_name,
                "s3_key": page.s3_key,
                "image_url": storage.generate_download_url(page.s3_key, expires_in=expires_in),
            }
            for page in page_crud.list_by_material(db, material.id)
        ]
        data = {
            "id": material.id,
            "uuid": material.uuid,
            "name": material.folder_name,
            "total_pages": material.total_pages,
            "pages": pages,
        }
        return create_response("获取教材详情成功", data, HTTP_STATUS_OK)


material_service = MaterialService()
