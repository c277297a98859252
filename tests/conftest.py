"""测试夹具：为 pytest 提供数据库、对象存储与客户端的共享配置。"""

import os
import shutil
import tempfile
import threading
from typing import Callable, Dict, Generator, List, Optional

TEST_ROOT = tempfile.mkdtemp(prefix="library-tests-")
TEST_DB_PATH = os.path.join(TEST_ROOT, "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"

# 必须在导入应用之前设置，配置对象在首次读取时缓存
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("LOG_DIR", os.path.join(TEST_ROOT, "log"))
os.environ.setdefault("STORAGE_TYPE", "LOCAL")
os.environ.setdefault("LOCAL_STORAGE_ROOT", os.path.join(TEST_ROOT, "storage"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.main import app
from app.packages.library.core.dependencies import get_db, get_storage
from app.packages.library.db import session as db_session
from app.packages.library.db.init_db import init_db
from app.packages.library.services.storage_backends import LocalStorage


class RecordingStorage(LocalStorage):
    """记录文件夹删除调用的本地存储，删除在线程池中执行，因此加锁。"""

    def __init__(self, root: str) -> None:
        super().__init__(root, public_base_url="http://testserver", api_prefix="/api/v1")
        self.deleted_folders: List[str] = []
        self.deleted_objects: List[str] = []
        self._lock = threading.Lock()

    def delete_folder(self, prefix: str) -> int:
        with self._lock:
            self.deleted_folders.append(prefix)
        return super().delete_folder(prefix)

    def delete_object(self, key, *, temp=False) -> None:
        with self._lock:
            self.deleted_objects.append(key)
        super().delete_object(key, temp=temp)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    init_db()
    yield

    engine.dispose()
    shutil.rmtree(TEST_ROOT, ignore_errors=True)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage(tmp_path) -> RecordingStorage:
    return RecordingStorage(str(tmp_path / "objects"))


@pytest.fixture()
def client(db_session_fixture, storage):
    """构建 FastAPI TestClient，并注入测试专用的数据库与存储依赖。"""

    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def login_as(client) -> Callable[..., Dict[str, str]]:
    """返回登录辅助函数，得到指定账号的认证请求头。"""

    def _login(username: str = "admin", password: str = "admin123") -> Dict[str, str]:
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}

    return _login


@pytest.fixture()
def admin_headers(login_as) -> Dict[str, str]:
    """系统管理员的认证请求头。"""
    return login_as()


@pytest.fixture()
def make_material(client, admin_headers) -> Callable[..., dict]:
    """通过管理端接口创建教材树节点并返回节点数据。"""

    def _make(folder_name: str, type: str = "category", parent_id: Optional[int] = None) -> dict:
        response = client.post(
            "/api/v1/admin/materials",
            json={"folder_name": folder_name, "type": type, "parent_id": parent_id},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture()
def convert_pages(client) -> Callable[..., dict]:
    """模拟外部转换函数回调，为教材写入指定数量的页面。"""

    def _convert(material_uuid: str, total: int = 2) -> dict:
        pages = [
            {
                "pageNumber": number,
                "fileName": f"page-{number:03d}.webp",
                "s3Key": f"book-page/{material_uuid}/page-{number:03d}.webp",
            }
            for number in range(1, total + 1)
        ]
        response = client.post("/api/v1/conversion-complete", json={"uuid": material_uuid, "pages": pages})
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _convert
