"""Database bootstrapping utilities."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.packages.library.core.config import get_settings
from app.packages.library.core.constants import DEFAULT_ADMIN_NAME
from app.packages.library.core.enums import MaterialTypeEnum, UserRoleEnum
from app.packages.library.core.security import get_password_hash
from app.packages.library.db import session as db_session
from app.packages.library.models import LectureMaterial, User
from app.packages.library.models.base import Base

logger = logging.getLogger(__name__)

# (名称, 类型, 原始文件名, 页数, 子节点)
SAMPLE_TREE = [
    (
        "小学教材",
        MaterialTypeEnum.CATEGORY,
        None,
        None,
        [
            (
                "一年级",
                MaterialTypeEnum.CATEGORY,
                None,
                None,
                [
                    ("基础语法 1", MaterialTypeEnum.BOOK, "elementary_grammar_1.pdf", 50, []),
                    ("基础词汇 1", MaterialTypeEnum.BOOK, "elementary_vocabulary_1.pdf", 30, []),
                ],
            ),
            (
                "二年级",
                MaterialTypeEnum.CATEGORY,
                None,
                None,
                [("基础语法 2", MaterialTypeEnum.BOOK, "elementary_grammar_2.pdf", 60, [])],
            ),
        ],
    ),
    (
        "初中教材",
        MaterialTypeEnum.CATEGORY,
        None,
        None,
        [
            (
                "一年级",
                MaterialTypeEnum.CATEGORY,
                None,
                None,
                [("中级语法 1", MaterialTypeEnum.BOOK, "middle_grammar_1.pdf", 80, [])],
            ),
        ],
    ),
]


def init_db() -> None:
    """Create all database tables if they do not exist and seed baseline data."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_system_admin(session)
        if get_settings().seed_sample_materials:
            _seed_sample_materials(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should surface
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_system_admin(db: Session) -> None:
    """Ensure the default system administrator exists."""
    settings = get_settings()
    admin = (
        db.query(User)
        .filter(User.username == settings.default_admin_username, User.is_deleted.is_(False))
        .first()
    )
    if admin is not None:
        return
    db.add(
        User(
            username=settings.default_admin_username,
            hashed_password=get_password_hash(settings.default_admin_password),
            name=DEFAULT_ADMIN_NAME,
            role=UserRoleEnum.SYSTEM_ADMIN.value,
            is_active=True,
        )
    )
    db.flush()
    logger.info("Default system administrator %s created", settings.default_admin_username)


def _seed_sample_materials(db: Session) -> None:
    """Populate a small sample tree when the material table is empty."""
    if db.query(LectureMaterial.id).first() is not None:
        return

    def add(nodes, parent: Optional[LectureMaterial]) -> None:
        for position, (name, kind, file_name, pages, children) in enumerate(nodes):
            material = LectureMaterial(
                folder_name=name,
                type=kind.value,
                parent_id=parent.id if parent else None,
                level=parent.level + 1 if parent else 0,
                sort_order=position,
                original_file_name=file_name,
                total_pages=pages,
                is_active=True,
                is_favorite=False,
            )
            db.add(material)
            db.flush()
            add(children, material)

    add(SAMPLE_TREE, None)
    logger.info("Sample material tree seeded")
