"""PDF 上传地址与转换完成回调的集成测试用例。"""

from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from app.main import app
from app.packages.library.core.config import get_settings
from app.packages.library.core.dependencies import get_db
from app.packages.library.core.security import decode_object_token


def test_issue_pdf_upload_url(client: TestClient, admin_headers, make_material):
    book = make_material("上传教材", type="book")

    response = client.post(
        "/api/v1/admin/materials/pdf-upload-url",
        json={"uuid": book["uuid"], "file_name": "语法 第一册.pdf", "file_size": 2048},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["temp_key"] == f"temp/{book['uuid']}/语法 第一册.pdf"
    assert data["upload_id"]

    token = parse_qs(urlparse(data["presigned_url"]).query)["t"][0]
    claims = decode_object_token(token)
    assert claims["op"] == "put"
    assert claims["temp"] is True
    assert claims["content_type"] == "application/pdf"
    assert claims["content_length"] == 2048
    assert claims["metadata"]["uuid"] == book["uuid"]
    assert claims["metadata"]["callback-url"].endswith("/api/v1/conversion-complete")
    # 元数据中的中文文件名经过百分号编码
    assert claims["metadata"]["original-file-name"].isascii()


def test_pdf_upload_url_validation(client: TestClient, admin_headers, make_material):
    book = make_material("上传校验教材", type="book")
    folder = make_material("上传校验目录")
    url = "/api/v1/admin/materials/pdf-upload-url"

    response = client.post(url, json={"uuid": book["uuid"], "file_name": "notes.docx", "file_size": 10}, headers=admin_headers)
    assert response.status_code == 400

    too_big = get_settings().max_pdf_size_bytes + 1
    response = client.post(url, json={"uuid": book["uuid"], "file_name": "big.pdf", "file_size": too_big}, headers=admin_headers)
    assert response.status_code == 400

    response = client.post(url, json={"uuid": folder["uuid"], "file_name": "a.pdf", "file_size": 10}, headers=admin_headers)
    assert response.status_code == 400

    response = client.post(url, json={"uuid": "missing-uuid", "file_name": "a.pdf", "file_size": 10}, headers=admin_headers)
    assert response.status_code == 404


def test_conversion_complete_writes_pages(client: TestClient, admin_headers, make_material, convert_pages):
    book = make_material("回调教材", type="book")

    data = convert_pages(book["uuid"], total=4)

    assert data == {"material_id": book["id"], "total_pages": 4, "notified": False}
    detail = client.get(f"/api/v1/materials/{book['id']}", headers=admin_headers).json()["data"]
    assert detail["total_pages"] == 4
    assert detail["pages"][0]["s3_key"] == f"book-page/{book['uuid']}/page-001.webp"


def test_conversion_complete_twice_conflicts(client: TestClient, make_material, convert_pages):
    book = make_material("重复回调教材", type="book")
    convert_pages(book["uuid"], total=1)

    response = client.post(
        "/api/v1/conversion-complete",
        json={"uuid": book["uuid"], "pages": [{"page_number": 1, "file_name": "p.webp", "s3_key": "k"}]},
    )

    assert response.status_code == 409


def test_conversion_complete_rejects_bad_payload(client: TestClient, make_material):
    book = make_material("异常回调教材", type="book")
    url = "/api/v1/conversion-complete"

    assert client.post(url, json={"uuid": book["uuid"], "pages": []}).status_code == 400
    duplicated = [
        {"pageNumber": 1, "fileName": "a.webp", "s3Key": "a"},
        {"pageNumber": 1, "fileName": "b.webp", "s3Key": "b"},
    ]
    assert client.post(url, json={"uuid": book["uuid"], "pages": duplicated}).status_code == 400
    assert client.post(url, json={"uuid": "unknown", "pages": duplicated[:1]}).status_code == 404


def test_conversion_callback_token(client: TestClient, make_material, monkeypatch):
    book = make_material("令牌回调教材", type="book")
    monkeypatch.setattr(get_settings(), "conversion_callback_token", "shared-secret")
    body = {"uuid": book["uuid"], "pages": [{"pageNumber": 1, "fileName": "p.webp", "s3Key": "k"}]}

    response = client.post("/api/v1/conversion-complete", json=body)
    assert response.status_code == 401

    response = client.post(
        "/api/v1/conversion-complete", json=body, headers={"X-Callback-Token": "shared-secret"}
    )
    assert response.status_code == 200


def test_conversion_events_requires_existing_material(client: TestClient, admin_headers):
    response = client.get("/api/v1/admin/materials/unknown-uuid/conversion-events", headers=admin_headers)
    assert response.status_code == 404

    response = client.get("/api/v1/admin/materials/unknown-uuid/conversion-events")
    assert response.status_code == 401


def test_conversion_events_does_not_use_request_scoped_session(client: TestClient, admin_headers):
    def _unavailable_db():
        raise AssertionError("事件流路由不应占用请求级数据库会话")
        yield  # pragma: no cover

    previous = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = _unavailable_db
    try:
        missing = client.get("/api/v1/admin/materials/unknown-uuid/conversion-events", headers=admin_headers)
        anonymous = client.get("/api/v1/admin/materials/unknown-uuid/conversion-events")
    finally:
        app.dependency_overrides[get_db] = previous

    assert missing.status_code == 404
    assert anonymous.status_code == 401


def test_conversion_events_forbidden_for_academy_accounts(client: TestClient, admin_headers, login_as, make_material):
    book = make_material("事件权限教材", type="book")
    academy = client.post(
        "/api/v1/academies",
        json={"campus_name": "事件权限校区", "region": "首尔"},
        headers=admin_headers,
    ).json()["data"]
    client.post(
        "/api/v1/users",
        json={"academy_id": academy["id"], "username": "events_instructor", "password": "secret123", "name": "讲师"},
        headers=admin_headers,
    )

    response = client.get(
        f"/api/v1/admin/materials/{book['uuid']}/conversion-events",
        headers=login_as("events_instructor", "secret123"),
    )

    assert response.status_code == 403
