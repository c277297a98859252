"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.library.models.academy import Academy
from app.packages.library.models.audio import Audio
from app.packages.library.models.favorite import UserFavoriteMaterial
from app.packages.library.models.material import LectureMaterial
from app.packages.library.models.page import Page
from app.packages.library.models.pdf_upload_session import PdfUploadSession
from app.packages.library.models.user import User

__all__ = [
    "Academy",
    "Audio",
    "LectureMaterial",
    "Page",
    "PdfUploadSession",
    "User",
    "UserFavoriteMaterial",
]
