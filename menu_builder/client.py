from __future__ import annotations

import logging
from typing import Any

import requests

from menu_builder.config import GATEWAY_URL, SHOP_HEADER, TOKEN_HEADER
from menu_builder.errors import AuthError, TransportError, ValidationError
from menu_builder.session import AuthSession

logger = logging.getLogger(__name__)


class GatewayClient:
    """Editor-side client of the menu gateway service."""

    def __init__(self, base_url: str = GATEWAY_URL, *, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _post(self, path: str, *, auth: AuthSession | None = None, body: Any = None) -> Any:
        headers: dict[str, str] = {}
        if auth is not None:
            headers[SHOP_HEADER] = auth.shop
            headers[TOKEN_HEADER] = auth.token
        try:
            response = self.session.post(f"{self.base_url}{path}", json=body, headers=headers)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code == 401:
            raise AuthError(_error_text(data) or "Unauthorized")
        if response.status_code == 400 and isinstance(data, dict) and data.get("userErrors"):
            first = data["userErrors"][0]
            raise ValidationError(str(first.get("message") or "Invalid menu."), field=first.get("field") or ())
        if not response.ok:
            raise TransportError(_error_text(data) or f"Gateway request failed (HTTP {response.status_code})")
        if data is None:
            raise TransportError(f"Invalid JSON from gateway (HTTP {response.status_code})")
        return data

    def _post_list(self, path: str, auth: AuthSession) -> list[dict[str, Any]]:
        data = self._post(path, auth=auth)
        if not isinstance(data, list):
            raise TransportError(_error_text(data) or "Expected a JSON list from the gateway.")
        return [item for item in data if isinstance(item, dict)]

    def fetch_collections(self, auth: AuthSession) -> list[dict[str, Any]]:
        return self._post_list("/api/fetch_collections", auth)

    def fetch_pages(self, auth: AuthSession) -> list[dict[str, Any]]:
        return self._post_list("/api/fetch_pages", auth)

    def create_menu(self, auth: AuthSession, title: str, handle: str, items: list[dict[str, Any]]) -> dict[str, Any]:
        data = self._post("/api/create_menu", auth=auth, body={"title": title, "handle": handle, "items": items})
        return dict(data.get("menu") or {})

    def exchange_oauth_code(self, shop: str, client_id: str, client_secret: str, code: str) -> str:
        body = {"shop": shop, "client_id": client_id, "client_secret": client_secret, "code": code}
        data = self._post("/api/oauth_exchange", body=body)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise TransportError(_error_text(data) or "Failed to exchange token")
        return str(token)


def _error_text(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    details = data.get("details")
    if error and details:
        return f"{error}: {details}"
    return str(error) if error else None
