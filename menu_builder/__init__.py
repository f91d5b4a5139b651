"""menu_builder: build nested navigation menus and push them to a Shopify store."""

from menu_builder.catalog import ResourceCatalog
from menu_builder.drag import DragReorderEngine
from menu_builder.editor import MenuEditor, Notification, PushStatus
from menu_builder.errors import (
    AuthError,
    MenuBuilderError,
    TransportError,
    UserActionError,
    ValidationError,
)
from menu_builder.export import export_forest, format_items
from menu_builder.selection import SelectionController
from menu_builder.session import AuthSession, SessionCache, SessionManager
from menu_builder.tree import LinkType, MenuNode, ResourceItem, TreeStore

__all__ = [
    "AuthError",
    "AuthSession",
    "DragReorderEngine",
    "LinkType",
    "MenuBuilderError",
    "MenuEditor",
    "MenuNode",
    "Notification",
    "PushStatus",
    "ResourceCatalog",
    "ResourceItem",
    "SelectionController",
    "SessionCache",
    "SessionManager",
    "TransportError",
    "TreeStore",
    "UserActionError",
    "ValidationError",
    "export_forest",
    "format_items",
]
