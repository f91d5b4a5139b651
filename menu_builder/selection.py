from __future__ import annotations

from typing import Iterable


class SelectionController:
    """Insertion anchor and inline-edit target; at most one node each."""

    def __init__(self) -> None:
        self.selected_id: str | None = None
        self.editing_id: str | None = None

    def select(self, node_id: str | None) -> None:
        self.selected_id = node_id
        self.editing_id = None

    def start_edit(self, node_id: str) -> None:
        self.selected_id = node_id
        self.editing_id = node_id

    def finish_edit(self) -> None:
        self.editing_id = None

    def clear(self) -> None:
        self.selected_id = None
        self.editing_id = None

    def forget(self, removed_ids: Iterable[str]) -> None:
        removed = set(removed_ids)
        if self.selected_id in removed:
            self.selected_id = None
        if self.editing_id in removed:
            self.editing_id = None
