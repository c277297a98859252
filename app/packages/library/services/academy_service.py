"""学院业务逻辑：列表、创建、修改与软删除。"""

from __future__ import annotations

import re
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.packages.library.core.constants import CONTACT_NUMBER_PATTERN, HTTP_STATUS_CREATED, HTTP_STATUS_OK
from app.packages.library.core.exceptions import NotFoundError, ValidationError
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.timezone import isoformat
from app.packages.library.crud.academies import academy_crud
from app.packages.library.models.academy import Academy

_CONTACT_NUMBER = re.compile(CONTACT_NUMBER_PATTERN)


def serialize_academy(academy: Academy) -> dict[str, Any]:
    return {
        "id": academy.id,
        "campus_name": academy.campus_name,
        "region": academy.region,
        "contact_number": academy.contact_number or "",
        "is_active": academy.is_active,
        "create_time": isoformat(academy.create_time),
        "update_time": isoformat(academy.update_time),
    }


def _clean_contact(contact_number: Optional[str]) -> Optional[str]:
    value = (contact_number or "").strip()
    if not value:
        return None
    if not _CONTACT_NUMBER.match(value):
        raise ValidationError("联系电话格式应为 010-0000-0000")
    return value


def _require_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label}不能为空")
    return text


class AcademyService:
    """学院采用软删除，已删除的学院不再出现在列表中，也不能被修改。"""

    def list_academies(self, db: Session) -> dict[str, Any]:
        data = [serialize_academy(item) for item in academy_crud.list_all(db)]
        return create_response("获取学院列表成功", data, HTTP_STATUS_OK)

    def create_academy(
        self,
        db: Session,
        *,
        campus_name: str,
        region: str,
        contact_number: Optional[str] = None,
    ) -> dict[str, Any]:
        academy = academy_crud.create(
            db,
            {
                "campus_name": _require_text(campus_name, "校区名称"),
                "region": _require_text(region, "地区"),
                "contact_number": _clean_contact(contact_number),
            },
        )
        logger.info("Academy %s created", academy.id)
        return create_response("创建学院成功", serialize_academy(academy), HTTP_STATUS_CREATED)

    def update_academy(
        self,
        db: Session,
        academy_id: int,
        *,
        campus_name: str,
        region: str,
        contact_number: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict[str, Any]:
        academy = academy_crud.get(db, academy_id)
        if academy is None:
            raise NotFoundError("学院不存在")
        academy.campus_name = _require_text(campus_name, "校区名称")
        academy.region = _require_text(region, "地区")
        academy.contact_number = _clean_contact(contact_number)
        if is_active is not None:
            academy.is_active = is_active
        academy_crud.save(db, academy)
        return create_response("修改学院成功", serialize_academy(academy), HTTP_STATUS_OK)

    def delete_academy(self, db: Session, academy_id: int) -> dict[str, Any]:
        academy = academy_crud.get(db, academy_id)
        if academy is None:
            raise NotFoundError("学院不存在")
        academy_crud.soft_delete(db, academy)
        logger.info("Academy %s soft-deleted", academy_id)
        return create_response("删除学院成功", None, HTTP_STATUS_OK)


academy_service = AcademyService()
