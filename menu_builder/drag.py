from __future__ import annotations

import logging

from menu_builder.errors import UserActionError
from menu_builder.tree import Forest, detach_node, insert_before, is_descendant

logger = logging.getLogger(__name__)


class DragReorderEngine:
    """Moves a dragged subtree so it sits just before the drop target."""

    def __init__(self) -> None:
        self.dragging_id: str | None = None

    def begin_drag(self, node_id: str) -> None:
        self.dragging_id = node_id

    def cancel_drag(self) -> None:
        self.dragging_id = None

    def drop(self, forest: Forest, target_id: str) -> Forest:
        """Return the relocated forest, or raise ``UserActionError`` leaving ``forest`` as is."""
        source_id = self.dragging_id
        self.dragging_id = None
        if source_id is None:
            raise UserActionError("Nothing is being dragged.")
        if target_id == source_id:
            raise UserActionError("Cannot drop an item onto itself.")

        # Full descendant traversal before touching anything.
        if is_descendant(forest, source_id, target_id):
            raise UserActionError("Cannot move an item inside its own children.")

        remaining, moved = detach_node(forest, source_id)
        if moved is None:
            raise UserActionError("The dragged item no longer exists.")
        relocated, placed = insert_before(remaining, target_id, moved)
        if not placed:
            raise UserActionError("The drop target no longer exists.")

        logger.debug("Moved node", extra={"node_id": source_id, "target_id": target_id})
        return relocated
