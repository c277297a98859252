"""对象存储抽象与实现：统一封装本地目录与 S3 的对象操作。

教材相关对象的 key 约定：

- ``book-page/{material_uuid}/``：转换后的页面图片所在"文件夹"；
- ``temp/{material_uuid}/{file_name}``：待转换的 PDF，写入临时桶；
- ``audio/{page_uuid}/{audio_uuid}.{ext}``：页面音频；
- ``html-layer/{page_uuid}.html``：页面 HTML 图层。
"""

from __future__ import annotations

import json
import mimetypes
import shutil
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.packages.library.core.config import Settings
from app.packages.library.core.constants import (
    AUDIO_PREFIX,
    BOOK_PAGE_PREFIX,
    HTML_LAYER_PREFIX,
    LOCAL_STORAGE_OBJECT_PATH,
    S3_DELETE_BATCH_SIZE,
    TEMP_PREFIX,
)
from app.packages.library.core.exceptions import StorageError, ValidationError
from app.packages.library.core.logger import get_logger
from app.packages.library.core.security import create_object_token

logger = get_logger("storage")


def book_folder_key(material_uuid: str) -> str:
    return f"{BOOK_PAGE_PREFIX}{material_uuid}/"


def temp_pdf_key(material_uuid: str, file_name: str) -> str:
    return f"{TEMP_PREFIX}{material_uuid}/{file_name}"


def audio_key(page_uuid: str, audio_uuid: str, file_name: str) -> str:
    ext = Path(file_name).suffix.lower().lstrip(".")
    return f"{AUDIO_PREFIX}{page_uuid}/{audio_uuid}.{ext}"


def html_layer_key(page_uuid: str) -> str:
    return f"{HTML_LAYER_PREFIX}{page_uuid}.html"


def guess_mime(file_name: str) -> str:
    mime, _ = mimetypes.guess_type(file_name)
    return mime or "application/octet-stream"


class ObjectStorage:
    """对象存储接口。``temp=True`` 表示操作临时桶。"""

    def delete_folder(self, prefix: str) -> int:
        """删除前缀下的全部对象并返回删除数量；前缀不存在不视为错误。"""
        raise NotImplementedError

    def put_object(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
        temp: bool = False,
    ) -> None:
        raise NotImplementedError

    def get_object_text(self, key: str, *, temp: bool = False) -> Optional[str]:
        """读取文本对象，对象不存在时返回 ``None``。"""
        raise NotImplementedError

    def delete_object(self, key: str, *, temp: bool = False) -> None:
        raise NotImplementedError

    def generate_upload_url(
        self,
        key: str,
        *,
        content_type: str,
        content_length: int,
        expires_in: int,
        metadata: Optional[Dict[str, str]] = None,
        temp: bool = False,
    ) -> str:
        raise NotImplementedError

    def generate_download_url(self, key: str, *, expires_in: int) -> str:
        raise NotImplementedError


class LocalStorage(ObjectStorage):
    """本地目录实现：主桶与临时桶分别映射为根目录下的 ``main`` 与 ``temp`` 子目录。

    预签名地址指向本服务的 ``/storage/objects`` 端点，令牌内携带 key 与上传约束。
    """

    def __init__(self, root: str | Path, *, public_base_url: str, api_prefix: str = "") -> None:
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.api_prefix = api_prefix
        for bucket in ("main", "temp"):
            (self.root / bucket).mkdir(parents=True, exist_ok=True)

    # 统一的安全路径拼接，防止路径遍历
    def resolve(self, key: str, *, temp: bool = False) -> Path:
        bucket_root = (self.root / ("temp" if temp else "main")).resolve()
        candidate = (bucket_root / key.lstrip("/")).resolve()
        try:
            candidate.relative_to(bucket_root)
        except ValueError as exc:
            raise ValidationError("非法的对象路径") from exc
        return candidate

    def delete_folder(self, prefix: str) -> int:
        target = self.resolve(prefix)
        if not target.exists():
            logger.info("Local folder %s does not exist, nothing to delete", prefix)
            return 0
        try:
            if target.is_dir():
                count = sum(1 for item in target.rglob("*") if item.is_file())
                shutil.rmtree(target)
                return count
            target.unlink()
            return 1
        except OSError as exc:
            raise StorageError(f"删除本地目录失败: {prefix}") from exc

    def put_object(self, key, body, *, content_type, metadata=None, temp=False) -> None:
        target = self.resolve(key, temp=temp)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(body)
            if metadata:
                target.with_name(target.name + ".meta.json").write_text(
                    json.dumps(metadata, ensure_ascii=False), encoding="utf-8"
                )
        except OSError as exc:
            raise StorageError(f"写入本地对象失败: {key}") from exc

    def get_object_text(self, key, *, temp=False) -> Optional[str]:
        target = self.resolve(key, temp=temp)
        if not target.is_file():
            return None
        try:
            return target.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"读取本地对象失败: {key}") from exc

    def delete_object(self, key, *, temp=False) -> None:
        target = self.resolve(key, temp=temp)
        try:
            target.unlink(missing_ok=True)
            target.with_name(target.name + ".meta.json").unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"删除本地对象失败: {key}") from exc

    def generate_upload_url(self, key, *, content_type, content_length, expires_in, metadata=None, temp=False) -> str:
        token = create_object_token(
            {
                "op": "put",
                "key": key,
                "temp": temp,
                "content_type": content_type,
                "content_length": int(content_length),
                "metadata": metadata or {},
            },
            expires_seconds=expires_in,
        )
        return self._object_url(token)

    def generate_download_url(self, key, *, expires_in) -> str:
        token = create_object_token({"op": "get", "key": key, "temp": False}, expires_seconds=expires_in)
        return self._object_url(token)

    def _object_url(self, token: str) -> str:
        return f"{self.public_base_url}{self.api_prefix}{LOCAL_STORAGE_OBJECT_PATH}?t={quote(token)}"


class S3Storage(ObjectStorage):
    """S3 实现：主桶保存教材资源，临时桶接收待转换的 PDF。"""

    def __init__(
        self,
        *,
        bucket: str,
        temp_bucket: Optional[str],
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ) -> None:
        self.bucket = bucket
        self.temp_bucket = temp_bucket or bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def _bucket(self, temp: bool) -> str:
        return self.temp_bucket if temp else self.bucket

    def delete_folder(self, prefix: str) -> int:
        paginator = self._client.get_paginator("list_objects_v2")
        keys: list[dict] = []
        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append({"Key": obj["Key"]})
            if not keys:
                logger.info("S3 folder %s is empty or missing", prefix)
                return 0
            for i in range(0, len(keys), S3_DELETE_BATCH_SIZE):
                batch = keys[i : i + S3_DELETE_BATCH_SIZE]
                response = self._client.delete_objects(Bucket=self.bucket, Delete={"Objects": batch, "Quiet": True})
                errors = response.get("Errors") or []
                if errors:
                    raise StorageError(f"删除 S3 文件夹失败: {prefix}", data={"errors": errors[:10]})
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 delete folder %s failed: %s", prefix, exc)
            raise StorageError(f"删除 S3 文件夹失败: {prefix}") from exc
        return len(keys)

    def put_object(self, key, body, *, content_type, metadata=None, temp=False) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket(temp),
                Key=key,
                Body=body,
                ContentType=content_type,
                ServerSideEncryption="AES256",
                Metadata=metadata or {},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 put %s failed: %s", key, exc)
            raise StorageError(f"上传对象失败: {key}") from exc

    def get_object_text(self, key, *, temp=False) -> Optional[str]:
        try:
            response = self._client.get_object(Bucket=self._bucket(temp), Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in {"NoSuchKey", "404", "NotFound"}:
                return None
            raise StorageError(f"读取对象失败: {key}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"读取对象失败: {key}") from exc
        return response["Body"].read().decode("utf-8")

    def delete_object(self, key, *, temp=False) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket(temp), Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 delete %s failed: %s", key, exc)
            raise StorageError(f"删除对象失败: {key}") from exc

    def generate_upload_url(self, key, *, content_type, content_length, expires_in, metadata=None, temp=False) -> str:
        params = {
            "Bucket": self._bucket(temp),
            "Key": key,
            "ContentType": content_type,
            "ContentLength": int(content_length),
            "ServerSideEncryption": "AES256",
            "Metadata": metadata or {},
        }
        try:
            return self._client.generate_presigned_url("put_object", Params=params, ExpiresIn=expires_in)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("生成预签名上传地址失败") from exc

    def generate_download_url(self, key, *, expires_in) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("生成预签名下载地址失败") from exc


def build_storage(settings: Settings) -> ObjectStorage:
    """根据配置构建对象存储实例。"""
    storage_type = (settings.storage_type or "").upper()
    if storage_type == "LOCAL":
        return LocalStorage(
            settings.local_storage_directory,
            public_base_url=settings.public_base_url,
            api_prefix=settings.api_v1_str,
        )
    if storage_type == "S3":
        if not (settings.aws_region and settings.s3_bucket_name):
            raise StorageError("S3 配置不完整")
        return S3Storage(
            bucket=settings.s3_bucket_name,
            temp_bucket=settings.s3_bucket_temp,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key,
            secret_access_key=settings.aws_secret_access_key,
        )
    raise StorageError(f"不支持的存储类型: {settings.storage_type}")
