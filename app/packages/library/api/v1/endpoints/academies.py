"""学院管理路由，仅系统管理员可访问。"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.academies import (
    AcademyCreateRequest,
    AcademyDeleteResponse,
    AcademyListResponse,
    AcademyResponse,
    AcademyUpdateRequest,
)
from app.packages.library.core.dependencies import get_db, require_system_admin
from app.packages.library.models.user import User
from app.packages.library.services.academy_service import academy_service

router = APIRouter(prefix="/academies", tags=["academies"])


@router.get("", response_model=AcademyListResponse)
def list_academies(
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> AcademyListResponse:
    """按创建时间倒序返回未删除的学院。"""
    return academy_service.list_academies(db)


@router.post("", response_model=AcademyResponse, status_code=status.HTTP_201_CREATED)
def create_academy(
    payload: AcademyCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> AcademyResponse:
    return academy_service.create_academy(
        db,
        campus_name=payload.campus_name,
        region=payload.region,
        contact_number=payload.contact_number,
    )


@router.put("/{academy_id}", response_model=AcademyResponse)
def update_academy(
    academy_id: int,
    payload: AcademyUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> AcademyResponse:
    return academy_service.update_academy(
        db,
        academy_id,
        campus_name=payload.campus_name,
        region=payload.region,
        contact_number=payload.contact_number,
        is_active=payload.is_active,
    )


@router.delete("/{academy_id}", response_model=AcademyDeleteResponse)
def delete_academy(
    academy_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> AcademyDeleteResponse:
    """软删除学院，记录仍保留在表中。"""
    return academy_service.delete_academy(db, academy_id)
