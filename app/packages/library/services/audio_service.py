"""页面音频：签发上传地址并登记音频记录，查询与删除。"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import (
    ALLOWED_AUDIO_EXTENSIONS,
    AUDIO_MIME_TYPES,
    HTTP_STATUS_OK,
)
from app.packages.library.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.timezone import isoformat
from app.packages.library.crud.audios import audio_crud
from app.packages.library.crud.pages import page_crud
from app.packages.library.models.audio import Audio
from app.packages.library.services.storage_backends import ObjectStorage, audio_key, guess_mime


def _serialize(audio: Audio) -> dict[str, Any]:
    return {
        "id": audio.id,
        "uuid": audio.uuid,
        "page_id": audio.page_id,
        "audio_name": audio.audio_name,
        "original_file_name": audio.original_file_name,
        "file_size": audio.file_size,
        "mime_type": audio.mime_type,
        "duration": float(audio.duration) if audio.duration is not None else None,
        "s3_key": audio.s3_key,
        "sort_order": audio.sort_order,
        "create_time": isoformat(audio.create_time),
    }


class AudioService:
    def issue_upload_url(
        self,
        db: Session,
        storage: ObjectStorage,
        *,
        page_id: int,
        file_name: str,
        file_size: int,
        audio_name: str,
        duration: Optional[float] = None,
        uploaded_by: Optional[int] = None,
    ) -> dict[str, Any]:
        settings = get_settings()
        page = page_crud.get(db, page_id)
        if page is None:
            raise NotFoundError("页面不存在")
        if file_size > settings.max_audio_size_bytes:
            raise ValidationError(f"文件大小不能超过 {settings.max_audio_size_bytes // (1024 * 1024)}MB")
        ext = Path(file_name).suffix.lower().lstrip(".")
        if ext not in ALLOWED_AUDIO_EXTENSIONS:
            raise ValidationError("不支持的音频格式（仅支持 MP3、WAV、OGG、AAC、M4A、FLAC）")
        mime_type = AUDIO_MIME_TYPES.get(ext) or guess_mime(file_name)

        audio = Audio(
            page_id=page.id,
            audio_name=audio_name.strip(),
            original_file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            duration=duration,
            uploaded_by=uploaded_by,
            sort_order=audio_crud.next_sort_order(db, page.id),
            s3_key="",
        )
        db.add(audio)
        try:
            db.flush()
            audio.s3_key = audio_key(page.uuid, audio.uuid, file_name)
            url = storage.generate_upload_url(
                audio.s3_key,
                content_type=mime_type,
                content_length=file_size,
                expires_in=settings.presigned_url_expire_seconds,
                metadata={
                    "audio-uuid": audio.uuid,
                    "page-uuid": page.uuid,
                    "original-file-name": quote(file_name),
                },
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError("登记音频失败") from exc
        except Exception:
            db.rollback()
            raise
        logger.info("Audio upload URL issued: %s for page %s", audio.uuid, page.id)
        return create_response(
            "获取上传地址成功",
            {"presigned_url": url, "audio_uuid": audio.uuid, "s3_key": audio.s3_key},
            HTTP_STATUS_OK,
        )

    def list_by_page(self, db: Session, page_id: int) -> dict[str, Any]:
        if page_crud.get(db, page_id) is None:
            raise NotFoundError("页面不存在")
        audios = [_serialize(item) for item in audio_crud.list_by_page(db, page_id)]
        return create_response("获取音频列表成功", audios, HTTP_STATUS_OK)

    def delete(self, db: Session, storage: ObjectStorage, audio_uuid: str) -> dict[str, Any]:
        """删除音频记录与对象；对象删除失败时回滚记录删除。"""
        audio = audio_crud.get_by_uuid(db, audio_uuid)
        if audio is None:
            raise NotFoundError("音频不存在")
        name, key = audio.audio_name, audio.s3_key
        db.delete(audio)
        try:
            db.flush()
            storage.delete_object(key)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError("删除音频失败") from exc
        except Exception:
            db.rollback()
            raise
        logger.info("Audio %s deleted (%s)", audio_uuid, key)
        return create_response("删除成功", {"deleted_audio_name": name, "deleted_s3_key": key}, HTTP_STATUS_OK)


audio_service = AudioService()
