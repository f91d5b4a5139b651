from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping

from menu_builder.tree import LinkType, ResourceItem

logger = logging.getLogger(__name__)


class ResourceCatalog:
    """Read-only list of linkable collections and pages from the store."""

    def __init__(self, items: Iterable[ResourceItem] = ()) -> None:
        self._items: tuple[ResourceItem, ...] = tuple(items)

    @classmethod
    def merge(
        cls,
        collections: Iterable[Mapping[str, Any]],
        pages: Iterable[Mapping[str, Any]],
    ) -> "ResourceCatalog":
        items: list[ResourceItem] = []
        for kind, records in ((LinkType.COLLECTION, collections), (LinkType.PAGE, pages)):
            for record in records or []:
                try:
                    items.append(ResourceItem.from_dict(record, kind))
                except ValueError as exc:
                    logger.warning("Skipping resource record", extra={"kind": kind, "error": str(exc)})
        return cls(items)

    def __iter__(self) -> Iterator[ResourceItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def collections(self) -> list[ResourceItem]:
        return [item for item in self._items if item.kind == LinkType.COLLECTION]

    @property
    def pages(self) -> list[ResourceItem]:
        return [item for item in self._items if item.kind == LinkType.PAGE]

    def get(self, resource_id: str) -> ResourceItem | None:
        return next((item for item in self._items if item.id == resource_id), None)

    def search(self, text: str = "") -> list[ResourceItem]:
        needle = (text or "").strip().lower()
        if not needle:
            return list(self._items)
        return [item for item in self._items if needle in item.title.lower()]
