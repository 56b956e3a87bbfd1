"""Pure helpers over the category parent-pointer map."""

from dataclasses import dataclass, field
from typing import Iterable, Mapping


@dataclass
class TreeNode:
    id: int
    name: str
    is_active: bool
    news_article_count: int = 0
    children: list["TreeNode"] = field(default_factory=list)


def is_valid_parent(
    category_id: int, parent_id: int | None, parent_of: Mapping[int, int | None]
) -> bool:
    """Return False when ``parent_id`` is ``category_id`` or one of its descendants.

    Walks upward from ``parent_id`` through ``parent_of``. A chain that revisits
    a node (already-corrupt data) is treated as invalid so the walk always
    terminates.
    """
    if parent_id is None:
        return True

    seen: set[int] = set()
    current: int | None = parent_id
    while current is not None:
        if current == category_id or current in seen:
            return False
        seen.add(current)
        current = parent_of.get(current)
    return True


def build_tree(categories: Iterable, article_counts: Mapping[int, int] | None = None) -> list[TreeNode]:
    """Assemble root-first nodes from flat category rows.

    ``categories`` only needs ``id``, ``name``, ``is_active`` and ``parent_id``
    attributes. Children keep the iteration order of ``categories``, so pass
    them sorted by name. Rows whose parent is missing from the input, or that
    sit on a cycle, are not reachable from a root and are left out.
    """
    article_counts = article_counts or {}
    nodes: dict[int, TreeNode] = {}
    children_of: dict[int | None, list[int]] = {}

    for category in categories:
        nodes[category.id] = TreeNode(
            id=category.id,
            name=category.name,
            is_active=category.is_active,
            news_article_count=article_counts.get(category.id, 0),
        )
        children_of.setdefault(category.parent_id, []).append(category.id)

    def attach(node_id: int, visited: frozenset) -> TreeNode:
        node = nodes[node_id]
        node.children = [
            attach(child_id, visited | {child_id})
            for child_id in children_of.get(node_id, [])
            if child_id not in visited
        ]
        return node

    return [attach(root_id, frozenset({root_id})) for root_id in children_of.get(None, [])]


__all__ = ["TreeNode", "build_tree", "is_valid_parent"]
