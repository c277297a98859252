"""页面音频接口的集成测试用例。"""

from fastapi.testclient import TestClient


def _first_page(client: TestClient, headers, make_material, convert_pages, name: str) -> dict:
    book = make_material(name, type="book")
    convert_pages(book["uuid"], total=1)
    return client.get(f"/api/v1/materials/{book['id']}", headers=headers).json()["data"]["pages"][0]


def test_issue_audio_upload_url(client: TestClient, admin_headers, make_material, convert_pages):
    page = _first_page(client, admin_headers, make_material, convert_pages, "音频教材")

    response = client.post(
        "/api/v1/admin/audios/upload-url",
        json={"page_id": page["id"], "file_name": "Lesson1.MP3", "file_size": 4096, "audio_name": "第一课", "duration": 12.5},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["s3_key"] == f"audio/{page['uuid']}/{data['audio_uuid']}.mp3"
    assert "/storage/objects?t=" in data["presigned_url"]

    listed = client.get(f"/api/v1/admin/pages/{page['id']}/audios", headers=admin_headers).json()["data"]
    assert len(listed) == 1
    assert listed[0]["mime_type"] == "audio/mpeg"
    assert listed[0]["duration"] == 12.5
    assert listed[0]["sort_order"] == 0


def test_audio_upload_validation(client: TestClient, admin_headers, make_material, convert_pages):
    page = _first_page(client, admin_headers, make_material, convert_pages, "音频校验教材")
    url = "/api/v1/admin/audios/upload-url"

    response = client.post(
        url,
        json={"page_id": page["id"], "file_name": "voice.exe", "file_size": 10, "audio_name": "错误格式"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = client.post(
        url,
        json={"page_id": 999999, "file_name": "voice.mp3", "file_size": 10, "audio_name": "缺页"},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_list_audios_newest_first(client: TestClient, admin_headers, make_material, convert_pages):
    page = _first_page(client, admin_headers, make_material, convert_pages, "音频列表教材")
    for name in ("较早音频", "较新音频"):
        client.post(
            "/api/v1/admin/audios/upload-url",
            json={"page_id": page["id"], "file_name": "a.wav", "file_size": 10, "audio_name": name},
            headers=admin_headers,
        )

    listed = client.get(f"/api/v1/admin/pages/{page['id']}/audios", headers=admin_headers).json()["data"]

    assert [item["audio_name"] for item in listed] == ["较新音频", "较早音频"]
    assert [item["sort_order"] for item in listed] == [1, 0]


def test_delete_audio(client: TestClient, admin_headers, make_material, convert_pages, storage):
    page = _first_page(client, admin_headers, make_material, convert_pages, "音频删除教材")
    issued = client.post(
        "/api/v1/admin/audios/upload-url",
        json={"page_id": page["id"], "file_name": "bye.ogg", "file_size": 10, "audio_name": "待删除"},
        headers=admin_headers,
    ).json()["data"]

    response = client.delete(f"/api/v1/admin/audios/{issued['audio_uuid']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"deleted_audio_name": "待删除", "deleted_s3_key": issued["s3_key"]}
    assert storage.deleted_objects == [issued["s3_key"]]
    assert client.get(f"/api/v1/admin/pages/{page['id']}/audios", headers=admin_headers).json()["data"] == []
    assert client.delete(f"/api/v1/admin/audios/{issued['audio_uuid']}", headers=admin_headers).status_code == 404


def test_deleting_book_removes_page_audios(client: TestClient, admin_headers, make_material, convert_pages):
    book = make_material("音频级联教材", type="book")
    convert_pages(book["uuid"], total=1)
    page = client.get(f"/api/v1/materials/{book['id']}", headers=admin_headers).json()["data"]["pages"][0]
    client.post(
        "/api/v1/admin/audios/upload-url",
        json={"page_id": page["id"], "file_name": "x.flac", "file_size": 10, "audio_name": "级联"},
        headers=admin_headers,
    )

    assert client.delete(f"/api/v1/admin/materials/{book['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/v1/admin/pages/{page['id']}/audios", headers=admin_headers).status_code == 404
