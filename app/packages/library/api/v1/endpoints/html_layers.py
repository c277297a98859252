"""页面 HTML 图层路由：管理员上传，登录用户读取。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.library.api.v1.schemas.uploads import (
    HtmlLayerResponse,
    HtmlLayerUploadRequest,
    HtmlLayerUploadResponse,
)
from app.packages.library.core.dependencies import (
    get_current_active_user,
    get_db,
    get_storage,
    require_system_admin,
)
from app.packages.library.models.user import User
from app.packages.library.services.html_layer_service import html_layer_service
from app.packages.library.services.storage_backends import ObjectStorage

router = APIRouter(tags=["html-layers"])


@router.put("/admin/pages/{page_uuid}/html-layer", response_model=HtmlLayerUploadResponse)
def upload_html_layer(
    page_uuid: str,
    payload: HtmlLayerUploadRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    _: User = Depends(require_system_admin),
) -> HtmlLayerUploadResponse:
    return html_layer_service.upload(db, storage, page_uuid, payload.html_content)


@router.get("/pages/{page_uuid}/html-layer", response_model=HtmlLayerResponse)
def read_html_layer(
    page_uuid: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    _: User = Depends(get_current_active_user),
) -> HtmlLayerResponse:
    """图层文件不存在时返回空内容与 ``has_file=false``。"""
    return html_layer_service.get(db, storage, page_uuid)
