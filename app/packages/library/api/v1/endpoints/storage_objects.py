"""本地对象存储的签名直链：承接 LocalStorage 签发的上传与下载地址。"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import FileResponse

from app.packages.library.core.constants import HTTP_STATUS_OK
from app.packages.library.core.dependencies import get_storage
from app.packages.library.core.logger import logger
from app.packages.library.core.responses import create_response
from app.packages.library.core.security import decode_object_token
from app.packages.library.services.storage_backends import LocalStorage, ObjectStorage, guess_mime

router = APIRouter(prefix="/storage", tags=["storage"])


def _verify(token: str, op: str, storage: ObjectStorage) -> dict:
    if not isinstance(storage, LocalStorage):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="当前存储不支持本地直链")
    payload = decode_object_token(token)
    if not payload or payload.get("op") != op or not isinstance(payload.get("key"), str):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="签名无效或已过期")
    return payload


@router.put("/objects")
async def put_signed_object(
    request: Request,
    t: str = Query(..., description="短期签名 token"),
    storage: ObjectStorage = Depends(get_storage),
) -> dict:
    payload = _verify(t, "put", storage)
    body = await request.body()
    expected_length = int(payload.get("content_length") or 0)
    if expected_length and len(body) != expected_length:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="文件大小与签名不一致")
    content_type = request.headers.get("content-type")
    if content_type and content_type.split(";")[0] != str(payload.get("content_type", "")).split(";")[0]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="文件类型与签名不一致")

    storage.put_object(
        payload["key"],
        body,
        content_type=payload.get("content_type") or "application/octet-stream",
        metadata=payload.get("metadata") or None,
        temp=bool(payload.get("temp")),
    )
    logger.info("Local object stored via signed URL: %s (%d bytes)", payload["key"], len(body))
    return create_response("上传成功", {"key": payload["key"], "size": len(body)}, HTTP_STATUS_OK)


@router.get("/objects")
def get_signed_object(
    t: str = Query(..., description="短期签名 token"),
    storage: ObjectStorage = Depends(get_storage),
) -> FileResponse:
    payload = _verify(t, "get", storage)
    target = storage.resolve(payload["key"], temp=bool(payload.get("temp")))
    if not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="文件不存在")
    return FileResponse(str(target), media_type=guess_mime(target.name))
