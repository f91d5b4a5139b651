from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Tuple
from uuid import uuid4

from menu_builder.config import CUSTOM_LINK_PLACEHOLDER
from menu_builder.errors import UserActionError

logger = logging.getLogger(__name__)


class LinkType:
    HTTP = "HTTP"
    COLLECTION = "COLLECTION"
    PAGE = "PAGE"

    ALL = frozenset({HTTP, COLLECTION, PAGE})
    RESOURCE_KINDS = frozenset({COLLECTION, PAGE})


URL_PREFIXES = {
    LinkType.COLLECTION: "/collections/",
    LinkType.PAGE: "/pages/",
}


def _new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class MenuNode:
    id: str
    title: str
    type: str  # HTTP | COLLECTION | PAGE
    url: str
    resource_id: str | None = None  # only for COLLECTION / PAGE
    items: tuple["MenuNode", ...] = ()

    def to_dict(self, *, include_id: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if include_id:
            payload["id"] = self.id
        payload["title"] = self.title
        payload["type"] = self.type
        payload["url"] = self.url
        if self.resource_id:
            payload["resourceId"] = self.resource_id
        payload["items"] = [child.to_dict(include_id=include_id) for child in self.items]
        return payload


Forest = Tuple[MenuNode, ...]


@dataclass(frozen=True)
class ResourceItem:
    id: str
    title: str
    handle: str
    kind: str  # COLLECTION | PAGE
    products_count: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], kind: str) -> "ResourceItem":
        if kind not in LinkType.RESOURCE_KINDS:
            raise ValueError(f"Invalid resource kind: {kind!r}.")
        resource_id = str(data.get("id") or "").strip()
        handle = str(data.get("handle") or "").strip()
        if not resource_id:
            raise ValueError("Resource id is required.")
        if not handle:
            raise ValueError("Resource handle is required.")
        count = data.get("productsCount")
        return cls(
            id=resource_id,
            title=str(data.get("title") or handle),
            handle=handle,
            kind=kind,
            products_count=int(count) if isinstance(count, (int, float)) else None,
        )

    @property
    def url(self) -> str:
        return f"{URL_PREFIXES[self.kind]}{self.handle}"


def iter_nodes(forest: Iterable[MenuNode], depth: int = 1) -> Iterator[tuple[MenuNode, int]]:
    """Depth-first walk yielding ``(node, depth)`` with roots at depth 1."""
    for node in forest:
        yield node, depth
        yield from iter_nodes(node.items, depth + 1)


def find_node(forest: Iterable[MenuNode], node_id: str | None) -> MenuNode | None:
    if node_id is None:
        return None
    for node, _ in iter_nodes(forest):
        if node.id == node_id:
            return node
    return None


def contains_node(forest: Iterable[MenuNode], node_id: str | None) -> bool:
    return find_node(forest, node_id) is not None


def subtree_ids(node: MenuNode) -> frozenset[str]:
    return frozenset(n.id for n, _ in iter_nodes((node,)))


def is_descendant(forest: Iterable[MenuNode], ancestor_id: str, node_id: str) -> bool:
    """True when ``node_id`` lives strictly below ``ancestor_id``."""
    ancestor = find_node(forest, ancestor_id)
    if ancestor is None:
        return False
    return contains_node(ancestor.items, node_id)


def node_depths(forest: Iterable[MenuNode]) -> dict[str, int]:
    return {node.id: depth for node, depth in iter_nodes(forest)}


def max_depth(forest: Iterable[MenuNode]) -> int:
    return max((depth for _, depth in iter_nodes(forest)), default=0)


def map_node(
    forest: Forest,
    node_id: str,
    action: Callable[[MenuNode], Optional[MenuNode]],
) -> tuple[Forest, bool]:
    """Rebuild the path down to ``node_id`` and replace it with ``action(node)``.

    Returning ``None`` from ``action`` drops the node with its subtree. Siblings and
    subtrees off the path are reused as-is, so earlier snapshots stay intact.
    """
    for idx, node in enumerate(forest):
        if node.id == node_id:
            updated = action(node)
            middle = () if updated is None else (updated,)
            return forest[:idx] + middle + forest[idx + 1 :], True
        if node.items:
            items, hit = map_node(node.items, node_id, action)
            if hit:
                return forest[:idx] + (replace(node, items=items),) + forest[idx + 1 :], True
    return forest, False


def detach_node(forest: Forest, node_id: str) -> tuple[Forest, MenuNode | None]:
    removed: list[MenuNode] = []

    def _take(node: MenuNode) -> None:
        removed.append(node)
        return None

    new_forest, hit = map_node(forest, node_id, _take)
    if not hit:
        return forest, None
    return new_forest, removed[0]


def insert_before(forest: Forest, target_id: str, node: MenuNode) -> tuple[Forest, bool]:
    """Splice ``node`` into the sibling list holding ``target_id``, just ahead of it."""
    for idx, current in enumerate(forest):
        if current.id == target_id:
            return forest[:idx] + (node,) + forest[idx:], True
        if current.items:
            items, hit = insert_before(current.items, target_id, node)
            if hit:
                return forest[:idx] + (replace(current, items=items),) + forest[idx + 1 :], True
    return forest, False


def _ensure_unique_ids(forest: Iterable[MenuNode]) -> None:
    seen: set[str] = set()
    for node, _ in iter_nodes(forest):
        if node.id in seen:
            raise ValueError(f"Duplicate node id: {node.id}")
        seen.add(node.id)


class TreeStore:
    """In-memory forest of menu nodes; every mutation swaps in a new snapshot."""

    EDITABLE_FIELDS = ("title", "url")

    def __init__(self, forest: Iterable[MenuNode] = ()) -> None:
        self.forest: Forest = ()
        self.version = 0
        self.replace(forest)

    def _commit(self, forest: Forest) -> None:
        self.forest = forest
        self.version += 1

    def replace(self, forest: Iterable[MenuNode]) -> None:
        snapshot = tuple(forest)
        _ensure_unique_ids(snapshot)
        self._commit(snapshot)

    def clear(self) -> None:
        self._commit(())

    def add_root_group(self, title: str) -> str:
        node = MenuNode(
            id=_new_id(),
            title=(title or "").strip(),
            type=LinkType.HTTP,
            url=CUSTOM_LINK_PLACEHOLDER,
        )
        self._commit(self.forest + (node,))
        logger.debug("Added root group", extra={"node_id": node.id})
        return node.id

    def add_child(self, anchor_id: str | None, resource: ResourceItem) -> str:
        if anchor_id is None:
            raise UserActionError("Please select a Group or Item first!")
        leaf = MenuNode(
            id=_new_id(),
            title=resource.title,
            type=resource.kind,
            url=resource.url,
            resource_id=resource.id,
        )
        forest, hit = map_node(self.forest, anchor_id, lambda n: replace(n, items=n.items + (leaf,)))
        if not hit:
            raise UserActionError("The selected item no longer exists.")
        self._commit(forest)
        logger.debug("Added child", extra={"node_id": leaf.id, "anchor_id": anchor_id})
        return leaf.id

    def update_node(self, node_id: str, **fields: Any) -> bool:
        changes = {k: str(v) for k, v in fields.items() if k in self.EDITABLE_FIELDS and v is not None}
        if not changes:
            return False
        forest, hit = map_node(self.forest, node_id, lambda n: replace(n, **changes))
        if hit:
            self._commit(forest)
        return hit

    def delete_node(self, node_id: str) -> frozenset[str]:
        forest, removed = detach_node(self.forest, node_id)
        if removed is None:
            return frozenset()
        self._commit(forest)
        return subtree_ids(removed)
