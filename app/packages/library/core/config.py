"""配置模块：负责加载和缓存基于环境变量的应用设置。"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 探测项目根目录并加载环境文件，支持通过 ENV_FILE/ENVIRONMENT 定制优先级。
def _detect_base_dir() -> Path:
    """向上遍历目录树，寻找包含 `app` 目录的项目根路径。"""
    current = Path(__file__).resolve()
    for candidate in current.parents:
        if (candidate / "app").is_dir():
            return candidate
    return current.parent


BASE_DIR = _detect_base_dir()


def _as_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_environment() -> None:
    env_file_override = os.getenv("ENV_FILE")
    if env_file_override:
        candidate = BASE_DIR / env_file_override
        if candidate.exists():
            load_dotenv(candidate, override=True, encoding="utf-8")
        return

    base_env = BASE_DIR / ".env"
    if base_env.exists():
        load_dotenv(base_env, override=False, encoding="utf-8")

    environment = os.getenv("ENVIRONMENT")
    if environment is None and _as_bool(os.getenv("DEBUG")):
        environment = "development"

    if environment:
        if environment.startswith(".env"):
            candidate_name = environment
        else:
            candidate_name = f".env.{environment}"
        candidate_path = BASE_DIR / candidate_name
        if candidate_path.exists():
            load_dotenv(candidate_path, override=True, encoding="utf-8")


_load_environment()


class Settings(BaseSettings):
    """
    封装应用运行所需的所有配置项，每个字段都可以通过环境变量重写。
    教材库、对象存储、认证与日志相关的魔法值统一在此声明。
    """

    project_name: str = Field(default="Tantan Lecture Library API", alias="PROJECT_NAME")
    api_v1_str: str = Field(default="/api/v1", alias="API_V1_STR")
    debug: bool = Field(default=False, alias="DEBUG")

    # 显式指定连接串时优先使用（测试或本地 SQLite 场景）
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_host: str = Field(default="localhost", alias="DATABASE_HOST")
    database_port: int = Field(default=5432, alias="DATABASE_PORT")
    database_user: str = Field(default="postgres", alias="DATABASE_USER")
    database_password: str = Field(default="postgres", alias="DATABASE_PASSWORD")
    database_name: str = Field(default="tantan", alias="DATABASE_NAME")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    session_backend: str = Field(default="redis", alias="SESSION_BACKEND")

    jwt_secret_key: str = Field(default="changeme", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_issuer: str = Field(default="tantan-backend", alias="JWT_ISSUER")
    access_token_expire_minutes: int = Field(default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="app.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    app_port: int = Field(default=8000, alias="APP_PORT")
    timezone: str = Field(default="Asia/Seoul", alias="TIMEZONE")

    # 对象存储：LOCAL 用于开发与测试，S3 用于生产
    storage_type: str = Field(default="LOCAL", alias="STORAGE_TYPE")
    local_storage_root: str = Field(default="storage", alias="LOCAL_STORAGE_ROOT")
    public_base_url: str = Field(default="http://127.0.0.1:8000", alias="PUBLIC_BASE_URL")
    aws_region: Optional[str] = Field(default=None, alias="AWS_REGION")
    aws_access_key: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    s3_bucket_name: Optional[str] = Field(default=None, alias="S3_BUCKET_NAME")
    s3_bucket_temp: Optional[str] = Field(default=None, alias="S3_BUCKET_TEMP")
    presigned_url_expire_seconds: int = Field(default=900, alias="PRESIGNED_URL_EXPIRE_SECONDS")
    storage_delete_workers: int = Field(default=4, alias="STORAGE_DELETE_WORKERS")

    # 上传限制
    max_pdf_size_bytes: int = Field(default=50 * 1024 * 1024, alias="MAX_PDF_SIZE_BYTES")
    max_audio_size_bytes: int = Field(default=100 * 1024 * 1024, alias="MAX_AUDIO_SIZE_BYTES")
    max_html_layer_chars: int = Field(default=1024 * 1024, alias="MAX_HTML_LAYER_CHARS")

    # PDF 转换回调（外部转换函数调用）
    backend_url_for_lambda: str = Field(default="http://127.0.0.1:8000", alias="BACKEND_URL_FOR_LAMBDA")
    conversion_callback_token: Optional[str] = Field(default=None, alias="CONVERSION_CALLBACK_TOKEN")
    sse_keepalive_seconds: float = Field(default=15.0, alias="SSE_KEEPALIVE_SECONDS")

    default_admin_username: str = Field(default="admin", alias="DEFAULT_ADMIN_USERNAME")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")
    seed_sample_materials: bool = Field(default=False, alias="SEED_SAMPLE_MATERIALS")

    model_config = SettingsConfigDict(extra="ignore")

    @property
    def sql_database_url(self) -> str:
        """优先返回显式配置的连接串，否则根据当前设置拼接 PostgreSQL 连接串。"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def redis_url(self) -> str:
        """根据当前配置生成 Redis 连接地址。"""
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    def _resolve_path(self, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @property
    def log_directory(self) -> Path:
        """返回日志目录的绝对路径，支持相对路径配置。"""
        return self._resolve_path(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        """组合日志目录与文件名，得到完整的日志文件路径。"""
        return self.log_directory / self.log_file_name

    @property
    def local_storage_directory(self) -> Path:
        """本地对象存储根目录的绝对路径。"""
        return self._resolve_path(self.local_storage_root)

    @property
    def conversion_callback_url(self) -> str:
        """写入 PDF 对象元数据的转换完成回调地址。"""
        return f"{self.backend_url_for_lambda.rstrip('/')}{self.api_v1_str}/conversion-complete"

    @property
    def timezone_info(self) -> ZoneInfo:
        """返回当前配置对应的时区信息，无法解析时回退到 UTC。"""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")


@lru_cache
def get_settings() -> Settings:
    """返回单例化的配置对象，避免重复解析环境变量造成性能浪费。"""
    return Settings()
