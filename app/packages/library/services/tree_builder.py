"""教材树组装：把按层级排好序的节点列表转换为森林，并提供子树克隆与重定基工具。

所有函数都是纯函数：不修改输入，也不访问数据库，便于单独测试。
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.packages.library.core.timezone import isoformat

TreeNode = Dict[str, Any]


def serialize_material(material: Any) -> TreeNode:
    """将教材节点转换为树节点字典，`children` 初始为空列表。"""
    node_type = getattr(material.type, "value", material.type)
    return {
        "id": material.id,
        "uuid": material.uuid,
        "folder_name": material.folder_name,
        "parent_id": material.parent_id,
        "level": material.level,
        "sort_order": material.sort_order,
        "type": node_type,
        "is_active": material.is_active,
        "is_favorite": material.is_favorite,
        "total_pages": material.total_pages,
        "create_time": isoformat(getattr(material, "create_time", None)),
        "update_time": isoformat(getattr(material, "update_time", None)),
        "children": [],
    }


def build_tree(
    materials: Iterable[Any],
    serializer: Callable[[Any], TreeNode] = serialize_material,
) -> List[TreeNode]:
    """按输入顺序组装森林。

    第一遍建立 ``id -> 节点`` 索引，第二遍把节点挂到父节点的 ``children`` 下；
    ``parent_id`` 为空或父节点不在本次集合中的节点都作为根节点返回。
    """
    ordered = list(materials)
    index: Dict[int, TreeNode] = {}
    for material in ordered:
        index[material.id] = serializer(material)

    roots: List[TreeNode] = []
    for material in ordered:
        node = index[material.id]
        parent = index.get(material.parent_id) if material.parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["children"].append(node)
    return roots


def index_forest(forest: Iterable[TreeNode]) -> Dict[int, TreeNode]:
    """广度优先展开森林，返回 ``id -> 节点`` 映射。"""
    index: Dict[int, TreeNode] = {}
    queue = list(forest)
    while queue:
        node = queue.pop(0)
        if node["id"] in index:
            continue
        index[node["id"]] = node
        queue.extend(node.get("children", []))
    return index


def clone_subtree(node: TreeNode) -> TreeNode:
    return copy.deepcopy(node)


def rebase_subtree(node: TreeNode, *, offset: Optional[int] = None) -> TreeNode:
    """把子树整体上移，使根节点成为 level 0 的独立根；原地修改并返回传入的节点。"""
    shift = node["level"] if offset is None else offset
    node["parent_id"] = None
    stack = [node]
    while stack:
        current = stack.pop()
        current["level"] = current["level"] - shift
        stack.extend(current.get("children", []))
    return node
