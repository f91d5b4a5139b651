from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from menu_builder.catalog import ResourceCatalog
from menu_builder.client import GatewayClient
from menu_builder.config import DEFAULT_MENU_TITLE, EXPORT_WORKERS
from menu_builder.drag import DragReorderEngine
from menu_builder.errors import AuthError, MenuBuilderError, UserActionError, ValidationError
from menu_builder.export import export_forest, generate_handle, render_preview
from menu_builder.selection import SelectionController
from menu_builder.session import AuthSession, SessionManager
from menu_builder.tree import Forest, ResourceItem, TreeStore, contains_node, max_depth, node_depths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    message: str
    type: str = "info"  # success | error | info | warning


class PushStatus:
    IDLE = "idle"
    PUSHING = "pushing"
    SUCCESS = "success"
    ERROR = "error"


class MenuEditor:
    """One editing session: each public method is a single user action.

    Tree commands run synchronously on the caller's thread. Gateway calls run on
    a worker pool and return futures that resolve after their result has been
    applied; nothing is cancelled, so a slow older response may land last.
    """

    def __init__(
        self,
        gateway: GatewayClient | None = None,
        sessions: SessionManager | None = None,
        *,
        notify: Callable[[str, str], None] | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.gateway = gateway or GatewayClient()
        self.sessions = sessions or SessionManager()
        self.store = TreeStore()
        self.selection = SelectionController()
        self.drag = DragReorderEngine()
        self.catalog = ResourceCatalog()
        self.auth = AuthSession.anonymous()
        self.push_status = PushStatus.IDLE
        self.notifications: list[Notification] = []
        self._generation = 0  # bumped whenever the connected store changes
        self._notify_cb = notify
        self._lock = threading.RLock()
        self._executor = executor or ThreadPoolExecutor(max_workers=EXPORT_WORKERS, thread_name_prefix="menu-builder")

    # -- notifications -------------------------------------------------

    def _notify(self, message: str, kind: str = "info") -> None:
        with self._lock:
            self.notifications.append(Notification(message, kind))
        if kind == "warning":
            logger.info("User action rejected: %s", message)
        if self._notify_cb is not None:
            self._notify_cb(message, kind)

    def _set_push_status(self, status: str) -> None:
        with self._lock:
            self.push_status = status

    def _switch_auth(self, auth: AuthSession) -> None:
        with self._lock:
            self.auth = auth
            self._generation += 1

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    # -- views ---------------------------------------------------------

    @property
    def forest(self) -> Forest:
        return self.store.forest

    def depth_badges(self) -> dict[str, int]:
        return node_depths(self.store.forest)

    def export_preview(self) -> str:
        try:
            return render_preview(export_forest(self.store.forest))
        except ValidationError as exc:
            return exc.message

    def search_resources(self, text: str = "") -> list[ResourceItem]:
        return self.catalog.search(text)

    # -- tree commands -------------------------------------------------

    def add_root_group(self, title: str) -> str | None:
        if not (title or "").strip():
            self._notify("Group name is required.", "warning")
            return None
        node_id = self.store.add_root_group(title)
        self.selection.select(node_id)
        return node_id

    def add_resource(self, resource: ResourceItem | str) -> str | None:
        if isinstance(resource, str):
            found = self.catalog.get(resource)
            if found is None:
                self._notify("That collection or page is no longer available.", "warning")
                return None
            resource = found
        try:
            return self.store.add_child(self.selection.selected_id, resource)
        except UserActionError as exc:
            self._notify(str(exc), "warning")
            return None

    def select(self, node_id: str | None) -> None:
        if node_id is not None and not contains_node(self.store.forest, node_id):
            self._notify("That menu item no longer exists.", "warning")
            return
        self.selection.select(node_id)

    def start_edit(self, node_id: str) -> None:
        if not contains_node(self.store.forest, node_id):
            self._notify("That menu item no longer exists.", "warning")
            return
        self.selection.start_edit(node_id)

    def commit_edit(self, **fields: Any) -> bool:
        node_id = self.selection.editing_id
        if node_id is None:
            self._notify("No menu item is being edited.", "warning")
            return False
        changed = self.store.update_node(node_id, **fields)
        self.selection.finish_edit()
        return changed

    def cancel_edit(self) -> None:
        self.selection.finish_edit()

    def delete(self, node_id: str) -> bool:
        removed = self.store.delete_node(node_id)
        if not removed:
            return False
        self.selection.forget(removed)
        if self.drag.dragging_id in removed:
            self.drag.cancel_drag()
        return True

    def begin_drag(self, node_id: str) -> None:
        self.drag.begin_drag(node_id)

    def drop(self, target_id: str) -> bool:
        try:
            relocated = self.drag.drop(self.store.forest, target_id)
        except UserActionError as exc:
            self._notify(str(exc), "warning")
            return False
        self.store.replace(relocated)
        self._notify("Menu item moved.", "success")
        return True

    # -- gateway calls -------------------------------------------------

    def refresh_catalog(self) -> Future | None:
        if not self.auth.authenticated:
            self._notify("Connect a store to load collections.", "error")
            return None
        return self._executor.submit(self._refresh_catalog_job, self.auth, self._generation)

    def _refresh_catalog_job(self, auth: AuthSession, generation: int) -> ResourceCatalog | None:
        try:
            collections = self.gateway.fetch_collections(auth)
            pages = self.gateway.fetch_pages(auth)
        except MenuBuilderError as exc:
            if not self._is_current(generation):
                return None
            self._notify(f"Failed to fetch collections: {exc}", "error")
            return None
        catalog = ResourceCatalog.merge(collections, pages)
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarded catalog for a store that is no longer connected", extra={"shop": auth.shop})
                return None
            self.catalog = catalog
        logger.debug("Catalog refreshed", extra={"shop": auth.shop, "resources": len(catalog)})
        return catalog

    def push_menu(self, title: str = DEFAULT_MENU_TITLE, handle: str | None = None) -> Future | None:
        """Validate the whole forest, then create the menu through the gateway.

        Returns ``None`` when nothing was sent (empty forest, failed pre-flight
        validation, or no connected store).
        """
        if not self.store.forest:
            return None
        try:
            items = export_forest(self.store.forest)
        except ValidationError as exc:
            self._set_push_status(PushStatus.ERROR)
            self._notify(exc.message, "error")
            return None
        if not self.auth.authenticated:
            self._set_push_status(PushStatus.ERROR)
            self._notify("Connect a store before pushing the menu.", "error")
            return None

        logger.info(
            "Pushing menu",
            extra={"shop": self.auth.shop, "roots": len(self.store.forest), "depth": max_depth(self.store.forest)},
        )
        self._set_push_status(PushStatus.PUSHING)
        return self._executor.submit(self._push_job, self.auth, title, handle or generate_handle(), items)

    def _push_job(
        self,
        auth: AuthSession,
        title: str,
        handle: str,
        items: list[dict[str, Any]],
    ) -> dict[str, Any] | None:
        try:
            menu = self.gateway.create_menu(auth, title, handle, items)
        except ValidationError as exc:
            self._set_push_status(PushStatus.ERROR)
            self._notify(f"Error: {exc.message}", "error")
            return None
        except MenuBuilderError as exc:
            self._set_push_status(PushStatus.ERROR)
            self._notify(f"System Error: {exc}", "error")
            return None
        self._set_push_status(PushStatus.SUCCESS)
        self._notify("Menu created successfully in Shopify!", "success")
        return menu

    # -- authentication ------------------------------------------------

    def restore_session(self) -> AuthSession:
        self._switch_auth(self.sessions.restore())
        if self.auth.authenticated:
            self.refresh_catalog()
        return self.auth

    def login_with_token(self, shop: str, token: str) -> bool:
        try:
            auth = self.sessions.login_with_token(shop, token)
        except AuthError as exc:
            self._notify(str(exc), "error")
            return False
        self._switch_auth(auth)
        self.refresh_catalog()
        return True

    def begin_oauth(self, shop: str, client_id: str, client_secret: str, redirect_uri: str) -> str | None:
        try:
            return self.sessions.begin_oauth(shop, client_id, client_secret, redirect_uri)
        except AuthError as exc:
            self._notify(str(exc), "error")
            return None

    def complete_oauth(self, code: str) -> Future:
        return self._executor.submit(self._complete_oauth_job, code, self._generation)

    def _complete_oauth_job(self, code: str, generation: int) -> AuthSession | None:
        try:
            auth = self.sessions.complete_oauth(code, self.gateway.exchange_oauth_code)
        except MenuBuilderError as exc:
            self._notify(str(exc), "error")
            return None
        with self._lock:
            if generation != self._generation:
                # Logged out or switched stores while the exchange was running.
                if self.auth.authenticated:
                    self.sessions.remember(self.auth)
                else:
                    self.sessions.logout()
                logger.debug("Discarded token exchange for a stale session", extra={"shop": auth.shop})
                return None
            self._switch_auth(auth)
            current = self._generation
        self._notify("Authentication successful!", "success")
        self._refresh_catalog_job(auth, current)
        return auth

    def logout(self) -> None:
        self._switch_auth(self.sessions.logout())
        self.store.clear()
        self.selection.clear()
        self.drag.cancel_drag()
        self.catalog = ResourceCatalog()
        self._set_push_status(PushStatus.IDLE)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
