"""PDF 上传、转换事件订阅与转换完成回调路由。"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.uploads import (
    ConversionCompleteRequest,
    ConversionCompleteResponse,
    PdfUploadUrlRequest,
    PdfUploadUrlResponse,
)
from app.packages.library.core.config import get_settings
from app.packages.library.core.dependencies import (
    authenticate,
    ensure_active,
    ensure_role,
    get_db,
    get_sse_registry,
    get_storage,
    require_system_admin,
    security_scheme,
)
from app.packages.library.core.enums import UserRoleEnum
from app.packages.library.core.logger import logger
from app.packages.library.db import session as db_session
from app.packages.library.models.user import User
from app.packages.library.services.pdf_upload_service import pdf_upload_service
from app.packages.library.services.sse import SSEConnectionRegistry
from app.packages.library.services.storage_backends import ObjectStorage

admin_router = APIRouter(prefix="/admin/materials", tags=["admin-uploads"])
callback_router = APIRouter(tags=["conversion"])


@admin_router.post("/pdf-upload-url", response_model=PdfUploadUrlResponse)
def issue_pdf_upload_url(
    payload: PdfUploadUrlRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: User = Depends(require_system_admin),
) -> PdfUploadUrlResponse:
    """签发 PDF 直传地址，上传完成后由外部转换函数处理并回调。"""
    return pdf_upload_service.issue_upload_url(
        db,
        storage,
        material_uuid=payload.uuid,
        file_name=payload.file_name,
        file_size=payload.file_size,
        uploaded_by=current_user.id,
    )


def _authorize_subscription(credentials: Optional[HTTPAuthorizationCredentials], material_uuid: str) -> None:
    # 流式响应结束前不持有数据库连接，认证与查询在独立会话中完成
    with db_session.SessionLocal() as db:
        user = ensure_active(authenticate(db, credentials))
        ensure_role(user, {UserRoleEnum.SYSTEM_ADMIN.value})
        pdf_upload_service.get_book(db, material_uuid)


@admin_router.get("/{material_uuid}/conversion-events")
async def subscribe_conversion_events(
    material_uuid: str,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    registry: SSEConnectionRegistry = Depends(get_sse_registry),
) -> StreamingResponse:
    """订阅教材的转换完成事件；同一教材只保留最新的订阅。"""
    await run_in_threadpool(_authorize_subscription, credentials, material_uuid)
    subscription = registry.subscribe(material_uuid)
    logger.info("SSE subscriber connected for %s", material_uuid)
    return StreamingResponse(
        registry.stream(subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )


@callback_router.post("/conversion-complete", response_model=ConversionCompleteResponse)
def conversion_complete(
    payload: ConversionCompleteRequest,
    db: Session = Depends(get_db),
    registry: SSEConnectionRegistry = Depends(get_sse_registry),
    callback_token: Optional[str] = Header(default=None, alias="X-Callback-Token"),
) -> ConversionCompleteResponse:
    """外部转换函数的回调入口；配置了共享令牌时必须携带 ``X-Callback-Token``。"""
    expected = get_settings().conversion_callback_token
    if expected and callback_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="回调令牌无效")
    return pdf_upload_service.complete_conversion(
        db,
        registry,
        material_uuid=payload.uuid,
        pages=[page.model_dump() for page in payload.pages],
    )
