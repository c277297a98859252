"""收藏路由：当前登录用户的收藏维护与收藏树。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.favorites import FavoriteIdsResponse, FavoriteStateResponse
from app.packages.library.api.v1.schemas.materials import MaterialTreeResponse
from app.packages.library.core.dependencies import get_current_active_user, get_db
from app.packages.library.models.user import User
from app.packages.library.services.favorite_service import favorite_service

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=FavoriteIdsResponse)
def list_favorites(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FavoriteIdsResponse:
    return favorite_service.list_ids(db, current_user.id)


@router.get("/tree", response_model=MaterialTreeResponse)
def read_favorite_tree(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MaterialTreeResponse:
    """每个收藏节点作为独立根返回其子树。"""
    return favorite_service.snapshot(db, current_user.id)


@router.put("/{material_id}", response_model=FavoriteStateResponse)
def add_favorite(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FavoriteStateResponse:
    return favorite_service.add(db, current_user.id, material_id)


@router.delete("/{material_id}", response_model=FavoriteStateResponse)
def remove_favorite(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FavoriteStateResponse:
    return favorite_service.remove(db, current_user.id, material_id)
