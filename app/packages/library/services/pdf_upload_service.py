"""PDF 上传与转换回调：签发临时桶上传地址，接收外部转换函数的页面结果。"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import quote

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import (
    HTTP_STATUS_OK,
    PDF_CONTENT_TYPE,
    SSE_EVENT_CONVERSION_COMPLETE,
)
from app.packages.library.core.enums import PdfUploadStatusEnum
from app.packages.library.core.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.timezone import now
from app.packages.library.crud.materials import material_crud
from app.packages.library.crud.pages import page_crud
from app.packages.library.crud.pdf_upload_sessions import pdf_upload_session_crud
from app.packages.library.models.material import LectureMaterial
from app.packages.library.services.sse import SSEConnectionRegistry
from app.packages.library.services.storage_backends import ObjectStorage, temp_pdf_key


class PdfUploadService:
    def get_book(self, db: Session, material_uuid: str) -> LectureMaterial:
        material = material_crud.get_by_uuid(db, material_uuid)
        if material is None:
            raise NotFoundError("教材不存在")
        return material

    def issue_upload_url(
        self,
        db: Session,
        storage: ObjectStorage,
        *,
        material_uuid: str,
        file_name: str,
        file_size: int,
        uploaded_by: Optional[int] = None,
    ) -> dict[str, Any]:
        """校验文件后签发 PDF 直传地址，并记录一条待转换的上传会话。"""
        settings = get_settings()
        file_name = (file_name or "").strip()
        if not file_name or not material_uuid or not file_size:
            raise ValidationError("缺少必要的上传信息")
        if file_size < 0 or file_size > settings.max_pdf_size_bytes:
            raise ValidationError(f"文件大小不能超过 {settings.max_pdf_size_bytes // (1024 * 1024)}MB")
        if not file_name.lower().endswith(".pdf"):
            raise ValidationError("只能上传 PDF 文件")

        material = self.get_book(db, material_uuid)
        if not material.is_book:
            raise ValidationError("只能为教材上传 PDF")

        expires_in = settings.presigned_url_expire_seconds
        key = temp_pdf_key(material.uuid, file_name)
        # S3 元数据只允许 ASCII
        metadata = {
            "uuid": material.uuid,
            "original-file-name": quote(file_name),
            "callback-url": settings.conversion_callback_url,
        }
        url = storage.generate_upload_url(
            key,
            content_type=PDF_CONTENT_TYPE,
            content_length=file_size,
            expires_in=expires_in,
            metadata=metadata,
            temp=True,
        )

        upload = pdf_upload_session_crud.create(
            db,
            {
                "material_uuid": material.uuid,
                "temp_key": key,
                "original_file_name": file_name,
                "file_size": file_size,
                "status": PdfUploadStatusEnum.PENDING.value,
                "uploaded_by": uploaded_by,
                "expires_at": now() + timedelta(seconds=expires_in),
            },
        )
        material.original_file_name = file_name
        material_crud.save(db, material)
        logger.info("PDF upload URL issued for material %s (%s, %d bytes)", material.uuid, key, file_size)
        return create_response(
            "获取上传地址成功",
            {
                "presigned_url": url,
                "temp_key": key,
                "upload_id": upload.upload_id,
                "expires_in": expires_in,
            },
            HTTP_STATUS_OK,
        )

    def complete_conversion(
        self,
        db: Session,
        registry: SSEConnectionRegistry,
        *,
        material_uuid: str,
        pages: Iterable[Mapping[str, Any]],
    ) -> dict[str, Any]:
        """写入转换结果并通知订阅者；同一教材重复回调视为冲突。"""
        material = self.get_book(db, material_uuid)
        items = sorted(pages, key=lambda item: int(item["page_number"]))
        if not items:
            raise ValidationError("页面列表不能为空")
        numbers = [int(item["page_number"]) for item in items]
        if len(set(numbers)) != len(numbers):
            raise ValidationError("页码重复")
        if page_crud.count_by_material(db, material.id):
            raise ConflictError("该教材已存在页面数据")

        try:
            page_crud.bulk_create(
                db,
                (
                    {
                        "lecture_material_id": material.id,
                        "page_number": int(item["page_number"]),
                        "file_name": item["file_name"],
                        "s3_key": item["s3_key"],
                    }
                    for item in items
                ),
            )
            material.total_pages = len(items)
            db.add(material)
            for upload in pdf_upload_session_crud.list_pending(db, material.uuid):
                upload.status = PdfUploadStatusEnum.COMPLETED.value
                db.add(upload)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("该教材已存在页面数据") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Conversion result for %s not saved: %s", material_uuid, exc)
            raise PersistenceError("保存转换结果失败") from exc

        delivered = registry.publish(
            material.uuid,
            {
                "type": SSE_EVENT_CONVERSION_COMPLETE,
                "data": {"material_id": material.id, "total_pages": len(items)},
            },
        )
        logger.info(
            "Conversion of %s completed with %d pages (notified=%s)",
            material.uuid,
            len(items),
            delivered,
            extra={"material_uuid": material.uuid},
        )
        return create_response(
            "转换结果已保存",
            {"material_id": material.id, "total_pages": len(items), "notified": delivered},
            HTTP_STATUS_OK,
        )


pdf_upload_service = PdfUploadService()
