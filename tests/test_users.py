"""学院账号接口的集成测试用例。"""

from fastapi.testclient import TestClient


def _academy(client: TestClient, headers, name: str) -> dict:
    response = client.post(
        "/api/v1/academies",
        json={"campus_name": name, "region": "首尔"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


def _user_body(academy_id: int, username: str, **overrides) -> dict:
    body = {
        "academy_id": academy_id,
        "username": username,
        "password": "secret123",
        "name": "测试账号",
        "email": "instructor@example.com",
        "phone_number": "010-1111-2222",
    }
    body.update(overrides)
    return body


def test_create_user_defaults_to_academy_admin(client: TestClient, admin_headers, login_as):
    academy = _academy(client, admin_headers, "账号默认校区")

    response = client.post("/api/v1/users", json=_user_body(academy["id"], "default_role"), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["role"] == "academy_admin"
    assert data["academy_id"] == academy["id"]
    assert "hashed_password" not in data

    login = client.post("/api/v1/auth/login", json={"username": "default_role", "password": "secret123"})
    assert login.json()["data"]["academy"]["campus_name"] == "账号默认校区"


def test_create_user_rejects_system_admin_role(client: TestClient, admin_headers):
    academy = _academy(client, admin_headers, "角色限制校区")

    response = client.post(
        "/api/v1/users",
        json=_user_body(academy["id"], "want_admin", role="system_admin"),
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_duplicate_username_conflicts(client: TestClient, admin_headers):
    academy = _academy(client, admin_headers, "重复账号校区")
    client.post("/api/v1/users", json=_user_body(academy["id"], "dup_user"), headers=admin_headers)

    response = client.post("/api/v1/users", json=_user_body(academy["id"], "dup_user"), headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["msg"] == "账号已存在"


def test_create_user_for_missing_academy(client: TestClient, admin_headers):
    response = client.post("/api/v1/users", json=_user_body(999999, "orphan_user"), headers=admin_headers)
    assert response.status_code == 404


def test_list_users_by_academy(client: TestClient, admin_headers):
    academy = _academy(client, admin_headers, "列表账号校区")
    client.post("/api/v1/users", json=_user_body(academy["id"], "list_a"), headers=admin_headers)
    client.post(
        "/api/v1/users", json=_user_body(academy["id"], "list_b", role="instructor"), headers=admin_headers
    )

    response = client.get(f"/api/v1/academies/{academy['id']}/users", headers=admin_headers)

    assert response.status_code == 200
    assert sorted(item["username"] for item in response.json()["data"]) == ["list_a", "list_b"]


def test_update_with_blank_password_keeps_old_one(client: TestClient, admin_headers, login_as):
    academy = _academy(client, admin_headers, "修改账号校区")
    user = client.post(
        "/api/v1/users", json=_user_body(academy["id"], "keep_password"), headers=admin_headers
    ).json()["data"]

    response = client.put(
        f"/api/v1/users/{user['id']}",
        json={"username": "keep_password", "name": "新姓名", "password": "", "is_active": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "新姓名"
    assert login_as("keep_password", "secret123")


def test_deactivated_user_cannot_login(client: TestClient, admin_headers):
    academy = _academy(client, admin_headers, "停用账号校区")
    user = client.post(
        "/api/v1/users", json=_user_body(academy["id"], "inactive_user"), headers=admin_headers
    ).json()["data"]
    client.put(
        f"/api/v1/users/{user['id']}",
        json={"username": "inactive_user", "name": "停用账号", "is_active": False},
        headers=admin_headers,
    )

    response = client.post("/api/v1/auth/login", json={"username": "inactive_user", "password": "secret123"})

    assert response.status_code == 401
    assert response.json()["msg"] == "账号或密码错误"


def test_delete_user(client: TestClient, admin_headers):
    academy = _academy(client, admin_headers, "删除账号校区")
    user = client.post(
        "/api/v1/users", json=_user_body(academy["id"], "deleted_user"), headers=admin_headers
    ).json()["data"]

    response = client.delete(f"/api/v1/users/{user['id']}", headers=admin_headers)
    assert response.status_code == 200

    login = client.post("/api/v1/auth/login", json={"username": "deleted_user", "password": "secret123"})
    assert login.status_code == 401
    # 软删除后登录账号可以重新使用
    response = client.post("/api/v1/users", json=_user_body(academy["id"], "deleted_user"), headers=admin_headers)
    assert response.status_code == 201


def test_cannot_delete_self(client: TestClient, admin_headers):
    me = client.get("/api/v1/auth/profile", headers=admin_headers).json()["data"]["user"]

    response = client.delete(f"/api/v1/users/{me['id']}", headers=admin_headers)

    assert response.status_code == 400


def test_deactivating_user_revokes_sessions(client: TestClient, admin_headers, login_as):
    academy = _academy(client, admin_headers, "撤销会话校区")
    user = client.post(
        "/api/v1/users", json=_user_body(academy["id"], "revoked_user"), headers=admin_headers
    ).json()["data"]
    user_headers = login_as("revoked_user", "secret123")
    assert client.get("/api/v1/auth/profile", headers=user_headers).status_code == 200

    client.put(
        f"/api/v1/users/{user['id']}",
        json={"username": "revoked_user", "name": "撤销会话", "is_active": False},
        headers=admin_headers,
    )

    response = client.get("/api/v1/auth/profile", headers=user_headers)
    assert response.status_code == 401
    assert response.json()["msg"] == "Token 无效或已过期"
