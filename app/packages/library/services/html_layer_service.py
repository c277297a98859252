"""页面 HTML 图层：管理员上传覆盖，所有登录用户可读取。"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import HTML_CONTENT_TYPE, HTTP_STATUS_OK, UUID_V4_PATTERN
from app.packages.library.core.exceptions import NotFoundError, ValidationError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.crud.pages import page_crud
from app.packages.library.models.page import Page
from app.packages.library.services.storage_backends import ObjectStorage, html_layer_key

_UUID_V4 = re.compile(UUID_V4_PATTERN, re.IGNORECASE)


class HtmlLayerService:
    def _get_page(self, db: Session, page_uuid: str) -> Page:
        if not page_uuid or not _UUID_V4.match(page_uuid):
            raise ValidationError("页面 UUID 格式无效")
        page = page_crud.get_by_uuid(db, page_uuid)
        if page is None:
            raise NotFoundError("页面不存在")
        return page

    def upload(self, db: Session, storage: ObjectStorage, page_uuid: str, html_content: str) -> dict[str, Any]:
        page = self._get_page(db, page_uuid)
        if not html_content:
            raise ValidationError("HTML 内容不能为空")
        limit = get_settings().max_html_layer_chars
        if len(html_content) > limit:
            raise ValidationError("HTML 内容过大（最大 1MB）")

        key = html_layer_key(page.uuid)
        storage.put_object(
            key,
            html_content.encode("utf-8"),
            content_type=HTML_CONTENT_TYPE,
            metadata={"page-uuid": page.uuid, "content-type": "html-layer"},
        )
        logger.info("HTML layer uploaded for page %s", page.uuid)
        return create_response(
            "HTML 图层上传成功",
            {"page_uuid": page.uuid, "s3_key": key, "page_number": page.page_number},
            HTTP_STATUS_OK,
        )

    def get(self, db: Session, storage: ObjectStorage, page_uuid: str) -> dict[str, Any]:
        """读取图层；文件不存在时返回空内容而不是错误。"""
        page = self._get_page(db, page_uuid)
        content = storage.get_object_text(html_layer_key(page.uuid))
        has_file = content is not None
        return create_response(
            "获取 HTML 图层成功" if has_file else "该页面没有 HTML 图层",
            {
                "page_uuid": page.uuid,
                "html_content": content or "",
                "has_file": has_file,
                "page_number": page.page_number,
            },
            HTTP_STATUS_OK,
        )


html_layer_service = HtmlLayerService()
