"""收藏接口的集成测试用例。"""

from fastapi.testclient import TestClient


def test_favorite_is_idempotent(client: TestClient, admin_headers, make_material):
    folder = make_material("收藏幂等目录")
    url = f"/api/v1/favorites/{folder['id']}"

    first = client.put(url, headers=admin_headers)
    second = client.put(url, headers=admin_headers)

    assert first.status_code == 200
    assert second.json()["data"] == {"material_id": folder["id"], "is_favorite": True}
    ids = client.get("/api/v1/favorites", headers=admin_headers).json()["data"]
    assert ids.count(folder["id"]) == 1

    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.delete(url, headers=admin_headers).json()["data"]["is_favorite"] is False
    assert folder["id"] not in client.get("/api/v1/favorites", headers=admin_headers).json()["data"]


def test_favorite_missing_or_inactive_node(client: TestClient, admin_headers, make_material):
    assert client.put("/api/v1/favorites/999999", headers=admin_headers).status_code == 404

    folder = make_material("停用收藏目录")
    client.patch(f"/api/v1/admin/materials/{folder['id']}", json={"is_active": False}, headers=admin_headers)
    assert client.put(f"/api/v1/favorites/{folder['id']}", headers=admin_headers).status_code == 404


def test_favorite_tree_rebases_each_subtree(client: TestClient, admin_headers, make_material):
    outer = make_material("收藏外层")
    middle = make_material("收藏中层", parent_id=outer["id"])
    book = make_material("收藏教材", type="book", parent_id=middle["id"])

    client.put(f"/api/v1/favorites/{middle['id']}", headers=admin_headers)
    client.put(f"/api/v1/favorites/{book['id']}", headers=admin_headers)

    response = client.get("/api/v1/favorites/tree", headers=admin_headers)

    assert response.status_code == 200
    snapshot = [node for node in response.json()["data"] if node["id"] in {middle["id"], book["id"]}]
    # 按收藏先后输出，嵌套的收藏各自独立成根
    assert [node["id"] for node in snapshot] == [middle["id"], book["id"]]
    assert snapshot[0]["level"] == 0
    assert snapshot[0]["parent_id"] is None
    assert snapshot[0]["children"][0]["id"] == book["id"]
    assert snapshot[0]["children"][0]["level"] == 1
    assert snapshot[1]["level"] == 0
    assert snapshot[1]["children"] == []

    # 收藏树是副本，完整教材树中的层级不受影响
    tree = client.get("/api/v1/admin/materials/tree", headers=admin_headers).json()["data"]
    outer_node = next(node for node in tree if node["id"] == outer["id"])
    assert outer_node["children"][0]["level"] == 1


def test_favorites_are_per_user(client: TestClient, admin_headers, login_as, make_material):
    folder = make_material("个人收藏目录")
    client.put(f"/api/v1/favorites/{folder['id']}", headers=admin_headers)

    academy = client.post(
        "/api/v1/academies",
        json={"campus_name": "收藏测试校区", "region": "首尔"},
        headers=admin_headers,
    ).json()["data"]
    client.post(
        "/api/v1/users",
        json={
            "academy_id": academy["id"],
            "username": "favorite_instructor",
            "password": "secret123",
            "name": "收藏讲师",
            "role": "instructor",
        },
        headers=admin_headers,
    )
    instructor_headers = login_as("favorite_instructor", "secret123")

    assert client.get("/api/v1/favorites", headers=instructor_headers).json()["data"] == []
    assert client.get("/api/v1/favorites/tree", headers=instructor_headers).json()["data"] == []


def test_deep_favorite_shifts_descendants_by_original_level(client: TestClient, admin_headers, make_material):
    level0 = make_material("深层收藏根")
    level1 = make_material("深层收藏一级", parent_id=level0["id"])
    level2 = make_material("深层收藏二级", parent_id=level1["id"])
    favorite = make_material("深层收藏三级", parent_id=level2["id"])
    child = make_material("深层收藏四级", parent_id=favorite["id"])
    grandchild = make_material("深层收藏教材", type="book", parent_id=child["id"])
    assert favorite["level"] == 3

    client.put(f"/api/v1/favorites/{favorite['id']}", headers=admin_headers)
    snapshot = client.get("/api/v1/favorites/tree", headers=admin_headers).json()["data"]

    root = next(node for node in snapshot if node["id"] == favorite["id"])
    assert (root["level"], root["parent_id"]) == (0, None)
    assert root["children"][0]["id"] == child["id"]
    assert root["children"][0]["level"] == 1
    assert root["children"][0]["children"][0]["id"] == grandchild["id"]
    assert root["children"][0]["children"][0]["level"] == 2


def test_favorite_tree_keeps_inactive_descendants(client: TestClient, admin_headers, make_material):
    folder = make_material("收藏含停用子节点")
    hidden = make_material("收藏下停用目录", parent_id=folder["id"])
    client.patch(f"/api/v1/admin/materials/{hidden['id']}", json={"is_active": False}, headers=admin_headers)
    client.put(f"/api/v1/favorites/{folder['id']}", headers=admin_headers)

    snapshot = client.get("/api/v1/favorites/tree", headers=admin_headers).json()["data"]

    root = next(node for node in snapshot if node["id"] == folder["id"])
    assert [(node["id"], node["is_active"]) for node in root["children"]] == [(hidden["id"], False)]
