"""Exceptions raised by the menu builder."""

from __future__ import annotations

from typing import Any, Iterable


class MenuBuilderError(Exception):
    """Base exception for menu builder operations."""


class ValidationError(MenuBuilderError):
    """Exported menu breaks the depth limit or lacks a required field."""

    def __init__(self, message: str, field: Iterable[str] = ("items",)) -> None:
        super().__init__(message)
        self.message = message
        self.field = tuple(str(part) for part in field)

    def to_user_error(self) -> dict[str, Any]:
        return {"field": list(self.field), "message": self.message}


class AuthError(MenuBuilderError):
    """Store domain or access token missing or rejected."""


class TransportError(MenuBuilderError):
    """Network failure or upstream platform error."""


class UserActionError(MenuBuilderError):
    """Invalid local editing action; reported as a warning, never fatal."""
