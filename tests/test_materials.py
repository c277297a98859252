"""教材树接口的集成测试用例。"""

from fastapi.testclient import TestClient

from app.packages.library.core.exceptions import StorageError
from app.packages.library.core.dependencies import get_storage
from app.main import app


def _find(forest, material_id):
    stack = list(forest)
    while stack:
        node = stack.pop()
        if node["id"] == material_id:
            return node
        stack.extend(node["children"])
    return None


def _admin_tree(client: TestClient, headers):
    response = client.get("/api/v1/admin/materials/tree", headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def test_create_root_and_child_levels(client: TestClient, make_material):
    root = make_material("层级根目录")
    child = make_material("层级子目录", parent_id=root["id"])
    book = make_material("层级教材", type="book", parent_id=child["id"])

    assert root["level"] == 0
    assert root["parent_id"] is None
    assert root["sort_order"] is None
    assert child["level"] == 1
    assert book["level"] == 2
    assert book["type"] == "book"
    assert len(book["uuid"]) == 36


def test_create_validates_input(client: TestClient, admin_headers):
    url = "/api/v1/admin/materials"

    response = client.post(url, json={"folder_name": "  ", "type": "category"}, headers=admin_headers)
    assert response.status_code == 400

    response = client.post(url, json={"folder_name": "x" * 101, "type": "category"}, headers=admin_headers)
    assert response.status_code == 400

    response = client.post(url, json={"folder_name": "类型错误", "type": "video"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == 400

    response = client.post(
        url, json={"folder_name": "父节点缺失", "type": "category", "parent_id": 987654}, headers=admin_headers
    )
    assert response.status_code == 404


def test_admin_endpoints_require_system_admin(client: TestClient):
    response = client.get("/api/v1/admin/materials/tree")
    assert response.status_code == 401
    assert response.json()["msg"] == "缺少认证信息"


def test_tree_orders_siblings_by_sort_order(client: TestClient, admin_headers, make_material):
    parent = make_material("排序父目录")
    first = make_material("排序 A", parent_id=parent["id"])
    second = make_material("排序 B", parent_id=parent["id"])
    third = make_material("排序 C", parent_id=parent["id"])

    client.patch(f"/api/v1/admin/materials/{first['id']}", json={"sort_order": 5}, headers=admin_headers)
    client.patch(f"/api/v1/admin/materials/{third['id']}", json={"sort_order": 1}, headers=admin_headers)

    node = _find(_admin_tree(client, admin_headers), parent["id"])
    # 空排序值按 0 处理，相同排序值按 id 排序
    assert [item["id"] for item in node["children"]] == [second["id"], third["id"], first["id"]]


def test_user_tree_hides_inactive_nodes(client: TestClient, admin_headers, make_material):
    parent = make_material("启用父目录")
    hidden = make_material("停用子目录", parent_id=parent["id"])
    response = client.patch(
        f"/api/v1/admin/materials/{hidden['id']}", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False

    user_tree = client.get("/api/v1/materials/tree", headers=admin_headers).json()["data"]
    assert _find(user_tree, parent["id"]) is not None
    assert _find(user_tree, hidden["id"]) is None
    assert _find(_admin_tree(client, admin_headers), hidden["id"]) is not None


def test_move_node_updates_levels_of_descendants(client: TestClient, admin_headers, make_material):
    source = make_material("移动源")
    target = make_material("移动目标")
    existing = make_material("目标已有子节点", parent_id=target["id"])
    client.patch(f"/api/v1/admin/materials/{existing['id']}", json={"sort_order": 3}, headers=admin_headers)
    moving = make_material("待移动目录", parent_id=source["id"])
    leaf = make_material("待移动教材", type="book", parent_id=moving["id"])

    response = client.patch(
        f"/api/v1/admin/materials/{moving['id']}", json={"parent_id": target["id"]}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["parent_id"] == target["id"]
    assert data["level"] == 1
    assert data["sort_order"] == 4

    node = _find(_admin_tree(client, admin_headers), leaf["id"])
    assert node["level"] == 2

    # 移动到根节点
    response = client.patch(
        f"/api/v1/admin/materials/{moving['id']}", json={"parent_id": None}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["level"] == 0
    assert _find(_admin_tree(client, admin_headers), leaf["id"])["level"] == 1


def test_empty_parent_id_moves_node_to_root(client: TestClient, admin_headers, make_material):
    outer = make_material("空父节点外层")
    child = make_material("空父节点子目录", parent_id=outer["id"])
    leaf = make_material("空父节点教材", type="book", parent_id=child["id"])

    response = client.patch(f"/api/v1/admin/materials/{child['id']}", json={"parent_id": ""}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["parent_id"] is None
    assert data["level"] == 0
    assert _find(_admin_tree(client, admin_headers), leaf["id"])["level"] == 1


def test_move_into_own_subtree_is_rejected(client: TestClient, admin_headers, make_material):
    outer = make_material("环路外层")
    inner = make_material("环路内层", parent_id=outer["id"])

    response = client.patch(
        f"/api/v1/admin/materials/{outer['id']}", json={"parent_id": inner["id"]}, headers=admin_headers
    )
    assert response.status_code == 400

    response = client.patch(
        f"/api/v1/admin/materials/{outer['id']}", json={"parent_id": outer["id"]}, headers=admin_headers
    )
    assert response.status_code == 400


def test_move_under_book_is_rejected(client: TestClient, admin_headers, make_material):
    book = make_material("不能作为父节点的教材", type="book")
    folder = make_material("想移到教材下的目录")

    response = client.patch(
        f"/api/v1/admin/materials/{folder['id']}", json={"parent_id": book["id"]}, headers=admin_headers
    )
    assert response.status_code == 400


def test_rename_keeps_position(client: TestClient, admin_headers, make_material):
    parent = make_material("重命名父目录")
    child = make_material("旧名称", parent_id=parent["id"])

    response = client.patch(
        f"/api/v1/admin/materials/{child['id']}", json={"folder_name": "新名称"}, headers=admin_headers
    )

    data = response.json()["data"]
    assert data["folder_name"] == "新名称"
    assert data["parent_id"] == parent["id"]
    assert data["level"] == 1


def test_delete_cascades_and_removes_book_folder_once(
    client: TestClient, admin_headers, make_material, convert_pages, storage
):
    root = make_material("删除根")
    sub = make_material("删除子目录", parent_id=root["id"])
    doc = make_material("删除教材", type="book", parent_id=sub["id"])
    convert_pages(doc["uuid"], total=3)
    client.put(f"/api/v1/favorites/{sub['id']}", headers=admin_headers)

    response = client.delete(f"/api/v1/admin/materials/{root['id']}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert sorted(data["deleted_ids"]) == sorted([root["id"], sub["id"], doc["id"]])
    assert storage.deleted_folders == [f"book-page/{doc['uuid']}/"]

    tree = _admin_tree(client, admin_headers)
    for item in (root, sub, doc):
        assert _find(tree, item["id"]) is None
    assert sub["id"] not in client.get("/api/v1/favorites", headers=admin_headers).json()["data"]
    assert client.get(f"/api/v1/materials/{doc['id']}", headers=admin_headers).status_code == 404


def test_delete_category_without_books_skips_storage(client: TestClient, admin_headers, make_material, storage):
    folder = make_material("空目录")

    response = client.delete(f"/api/v1/admin/materials/{folder['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert storage.deleted_folders == []


def test_delete_missing_node_returns_404(client: TestClient, admin_headers):
    response = client.delete("/api/v1/admin/materials/999999", headers=admin_headers)
    assert response.status_code == 404


def test_delete_rolls_back_when_storage_fails(client: TestClient, admin_headers, make_material):
    folder = make_material("存储失败目录")
    book = make_material("存储失败教材", type="book", parent_id=folder["id"])

    class FailingStorage:
        def delete_folder(self, prefix):
            raise StorageError("boom")

    app.dependency_overrides[get_storage] = lambda: FailingStorage()
    response = client.delete(f"/api/v1/admin/materials/{folder['id']}", headers=admin_headers)

    assert response.status_code == 502
    assert response.json()["data"] == {"folders": [f"book-page/{book['uuid']}/"]}
    tree = _admin_tree(client, admin_headers)
    assert _find(tree, folder["id"]) is not None
    assert _find(tree, book["id"]) is not None


def test_material_detail_lists_pages_in_order(client: TestClient, admin_headers, make_material, convert_pages):
    book = make_material("详情教材", type="book")
    convert_pages(book["uuid"], total=3)

    response = client.get(f"/api/v1/materials/{book['id']}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "详情教材"
    assert data["total_pages"] == 3
    assert [page["page_number"] for page in data["pages"]] == [1, 2, 3]
    assert "/storage/objects?t=" in data["pages"][0]["image_url"]


def test_material_detail_rejects_category_and_inactive(client: TestClient, admin_headers, make_material):
    folder = make_material("详情目录")
    book = make_material("停用教材", type="book")
    client.patch(f"/api/v1/admin/materials/{book['id']}", json={"is_active": False}, headers=admin_headers)

    assert client.get(f"/api/v1/materials/{folder['id']}", headers=admin_headers).status_code == 404
    assert client.get(f"/api/v1/materials/{book['id']}", headers=admin_headers).status_code == 404
