"""页面音频路由，仅系统管理员可访问。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.uploads import (
    AudioDeleteResponse,
    AudioListResponse,
    AudioUploadUrlRequest,
    AudioUploadUrlResponse,
)
from app.packages.library.core.dependencies import get_db, get_storage, require_system_admin
from app.packages.library.models.user import User
from app.packages.library.services.audio_service import audio_service
from app.packages.library.services.storage_backends import ObjectStorage

router = APIRouter(prefix="/admin", tags=["admin-audios"])


@router.post("/audios/upload-url", response_model=AudioUploadUrlResponse)
def issue_audio_upload_url(
    payload: AudioUploadUrlRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: User = Depends(require_system_admin),
) -> AudioUploadUrlResponse:
    """登记音频记录并签发直传地址。"""
    return audio_service.issue_upload_url(
        db,
        storage,
        page_id=payload.page_id,
        file_name=payload.file_name,
        file_size=payload.file_size,
        audio_name=payload.audio_name,
        duration=payload.duration,
        uploaded_by=current_user.id,
    )


@router.get("/pages/{page_id}/audios", response_model=AudioListResponse)
def list_page_audios(
    page_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_system_admin),
) -> AudioListResponse:
    return audio_service.list_by_page(db, page_id)


@router.delete("/audios/{audio_uuid}", response_model=AudioDeleteResponse)
def delete_audio(
    audio_uuid: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    _: User = Depends(require_system_admin),
) -> AudioDeleteResponse:
    return audio_service.delete(db, storage, audio_uuid)
