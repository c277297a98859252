"""教材树路由：管理端维护树结构，用户端只读启用的节点。"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.materials import (
    MaterialCreateRequest,
    MaterialDeleteResponse,
    MaterialDetailResponse,
    MaterialResponse,
    MaterialTreeResponse,
    MaterialUpdateRequest,
)
from app.packages.library.core.dependencies import (
    get_current_active_user,
    get_db,
    get_storage,
    require_system_admin,
)
from app.packages.library.models.user import User
from app.packages.library.services.material_service import UNSET, material_service
from app.packages.library.services.storage_backends import ObjectStorage

admin_router = APIRouter(prefix="/admin/materials", tags=["admin-materials"])
router = APIRouter(prefix="/materials", tags=["materials"])


@admin_router.get("/tree", response_model=MaterialTreeResponse)
def read_admin_tree(
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> MaterialTreeResponse:
    """返回包含停用节点在内的完整教材树。"""
    return material_service.list_tree(db)


@admin_router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
def create_material(
    payload: MaterialCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_system_admin),
) -> MaterialResponse:
    return material_service.create(
        db,
        folder_name=payload.folder_name,
        type=payload.type,
        parent_id=payload.parent_id,
        uploaded_by=current_user.id,
    )


@admin_router.patch("/{material_id}", response_model=MaterialResponse)
def update_material(
    material_id: int,
    payload: MaterialUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> MaterialResponse:
    """修改节点；请求体包含 ``parent_id`` 时执行移动。"""
    fields = payload.model_dump(exclude_unset=True, exclude={"parent_id"})
    parent_id = payload.parent_id if "parent_id" in payload.model_fields_set else UNSET
    return material_service.update(db, material_id, fields, parent_id)


@admin_router.delete("/{material_id}", response_model=MaterialDeleteResponse)
def delete_material(
    material_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    _: User = Depends(require_system_admin),
) -> MaterialDeleteResponse:
    """删除节点与全部子孙，同时清理教材在对象存储中的页面目录。"""
    return material_service.delete(db, material_id, storage)


@router.get("/tree", response_model=MaterialTreeResponse)
def read_tree(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> MaterialTreeResponse:
    return material_service.list_tree(db, active_only=True)


@router.get("/{material_id}", response_model=MaterialDetailResponse)
def read_material(
    material_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    _: User = Depends(get_current_active_user),
) -> MaterialDetailResponse:
    return material_service.get_detail(db, material_id, storage)
