"""PDF 上传会话 CRUD。"""

from typing import List

from sqlalchemy.orm import Session

from app.packages.library.core.enums import PdfUploadStatusEnum
from app.packages.library.crud.base import CRUDBase
from app.packages.library.models.pdf_upload_session import PdfUploadSession


class CRUDPdfUploadSession(CRUDBase[PdfUploadSession]):
    def list_pending(self, db: Session, material_uuid: str) -> List[PdfUploadSession]:
        return (
            self.query(db)
            .filter(
                PdfUploadSession.material_uuid == material_uuid,
                PdfUploadSession.status == PdfUploadStatusEnum.PENDING.value,
            )
            .all()
        )


pdf_upload_session_crud = CRUDPdfUploadSession(PdfUploadSession)
