from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from menu_builder.config import CUSTOM_LINK_PLACEHOLDER, MAX_MENU_DEPTH, MENU_HANDLE_PREFIX
from menu_builder.errors import ValidationError
from menu_builder.tree import LinkType, MenuNode

DEPTH_LIMIT_MESSAGE = "Menu is too deep! Shopify only allows 3 levels of nesting."

yaml = YAML()
# Compact 2-space outline; avoid wrapping long titles or urls.
yaml.indent(mapping=2, sequence=4, offset=2)
yaml.width = 4096


def format_items(
    items: Any,
    depth: int = 1,
    path: Sequence[str] = ("items",),
) -> list[dict[str, Any]]:
    """Validate and format menu records for the platform's menu-creation input.

    Runs identically before the client pushes and inside the gateway. The first
    problem found aborts the whole export; nothing partial is returned.
    """
    if depth > MAX_MENU_DEPTH:
        raise ValidationError(DEPTH_LIMIT_MESSAGE, field=path)
    if not isinstance(items, (list, tuple)):
        raise ValidationError("Menu items must be a list.", field=path)

    formatted: list[dict[str, Any]] = []
    for idx, item in enumerate(items):
        item_path = (*path, str(idx))
        if not isinstance(item, Mapping):
            raise ValidationError("Menu item must be an object.", field=item_path)

        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Menu item title is required.", field=(*item_path, "title"))
        link_type = item.get("type")
        if link_type not in LinkType.ALL:
            raise ValidationError("Menu item type must be HTTP, COLLECTION or PAGE.", field=(*item_path, "type"))
        url = item.get("url")
        if not isinstance(url, str):
            raise ValidationError("Menu item url is required.", field=(*item_path, "url"))

        record: dict[str, Any] = {"title": title, "type": link_type, "url": url}
        resource_id = item.get("resourceId")
        if resource_id:
            record["resourceId"] = str(resource_id)
        children = item.get("items") or []
        record["items"] = format_items(children, depth + 1, (*item_path, "items")) if children else []
        formatted.append(record)
    return formatted


def export_forest(forest: Iterable[MenuNode]) -> list[dict[str, Any]]:
    """Wire records for the whole forest, local ids dropped."""
    return format_items([node.to_dict() for node in forest])


def _records_to_outline(records: Iterable[Mapping[str, Any]]) -> CommentedSeq:
    outline = CommentedSeq()
    for record in records:
        title = record["title"]
        url = record["url"]
        children = record.get("items") or []
        if not children:
            outline.append(CommentedMap({title: url}))
            continue
        seq = CommentedSeq()
        # A group that links somewhere keeps its own url as the first entry.
        if url and url != CUSTOM_LINK_PLACEHOLDER:
            seq.append(url)
        seq.extend(_records_to_outline(children))
        outline.append(CommentedMap({title: seq}))
    return outline


def render_preview(records: Iterable[Mapping[str, Any]]) -> str:
    """Dump exported records as a YAML outline."""
    buf = io.StringIO()
    yaml.dump(_records_to_outline(records), buf)
    text = buf.getvalue()
    if text and not text.endswith("\n"):
        text += "\n"
    return text


def generate_handle(now: datetime | None = None) -> str:
    stamp = now or datetime.now()
    return f"{MENU_HANDLE_PREFIX}{int(stamp.timestamp() * 1000)}"
