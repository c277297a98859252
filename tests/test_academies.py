"""学院接口的集成测试用例。"""

from fastapi.testclient import TestClient


def _create(client: TestClient, headers, **overrides):
    body = {"campus_name": "江南校区", "region": "首尔江南区", "contact_number": "010-1234-5678"}
    body.update(overrides)
    return client.post("/api/v1/academies", json=body, headers=headers)


def test_create_and_list_academy(client: TestClient, admin_headers):
    response = _create(client, admin_headers, campus_name="列表校区")

    assert response.status_code == 201
    created = response.json()["data"]
    assert created["campus_name"] == "列表校区"
    assert created["contact_number"] == "010-1234-5678"
    assert created["is_active"] is True

    listed = client.get("/api/v1/academies", headers=admin_headers).json()["data"]
    assert created["id"] in [item["id"] for item in listed]


def test_contact_number_format(client: TestClient, admin_headers):
    response = _create(client, admin_headers, contact_number="02-123-4567")

    assert response.status_code == 400
    assert response.json()["code"] == 400

    response = _create(client, admin_headers, campus_name="无电话校区", contact_number="")
    assert response.status_code == 201
    assert response.json()["data"]["contact_number"] == ""


def test_short_campus_name_fails_validation(client: TestClient, admin_headers):
    response = _create(client, admin_headers, campus_name="A")

    assert response.status_code == 422
    assert response.json()["msg"] == "请求参数验证失败"


def test_update_academy(client: TestClient, admin_headers):
    academy = _create(client, admin_headers, campus_name="修改前校区").json()["data"]

    response = client.put(
        f"/api/v1/academies/{academy['id']}",
        json={"campus_name": "修改后校区", "region": "釜山", "is_active": False},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["campus_name"] == "修改后校区"
    assert data["region"] == "釜山"
    assert data["is_active"] is False


def test_delete_academy_is_soft(client: TestClient, admin_headers):
    academy = _create(client, admin_headers, campus_name="删除校区").json()["data"]

    response = client.delete(f"/api/v1/academies/{academy['id']}", headers=admin_headers)
    assert response.status_code == 200

    listed = client.get("/api/v1/academies", headers=admin_headers).json()["data"]
    assert academy["id"] not in [item["id"] for item in listed]
    response = client.put(
        f"/api/v1/academies/{academy['id']}",
        json={"campus_name": "已删除校区", "region": "首尔"},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_academy_routes_require_system_admin(client: TestClient, admin_headers, login_as):
    academy = _create(client, admin_headers, campus_name="权限校区").json()["data"]
    client.post(
        "/api/v1/users",
        json={
            "academy_id": academy["id"],
            "username": "academy_manager",
            "password": "secret123",
            "name": "学院管理员",
        },
        headers=admin_headers,
    )
    manager_headers = login_as("academy_manager", "secret123")

    response = client.get("/api/v1/academies", headers=manager_headers)

    assert response.status_code == 403
    assert response.json()["msg"] == "权限不足"
