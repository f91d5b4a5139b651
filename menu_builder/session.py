from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlencode

from menu_builder.config import OAUTH_SCOPES, SESSION_CACHE_PATH
from menu_builder.errors import AuthError

logger = logging.getLogger(__name__)

AUTH_KEY = "shopify_menu_auth"
CREDS_KEY = "shopify_menu_creds"
SHOP_SUFFIX = ".myshopify.com"

TokenExchange = Callable[[str, str, str, str], str]


def normalize_shop(shop: str) -> str:
    """Turn ``https://my-store/`` or ``my-store`` into ``my-store.myshopify.com``."""
    cleaned = re.sub(r"^https?://", "", (shop or "").strip()).rstrip("/")
    if not cleaned:
        raise AuthError("Store domain is required.")
    if SHOP_SUFFIX not in cleaned:
        cleaned += SHOP_SUFFIX
    return cleaned


@dataclass
class AuthSession:
    shop: str
    token: str
    authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "AuthSession":
        return cls(shop="", token="", authenticated=False)


class SessionCache:
    """Plain JSON key-value file; no locking, last write wins."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or SESSION_CACHE_PATH

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            return data if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError):
            return {}

    def _save(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=True)

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._load().get(key)
        return value if isinstance(value, dict) else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        payload = self._load()
        payload[key] = value
        self._save(payload)
        logger.debug("Session cache entry written", extra={"key": key})

    def delete(self, key: str) -> None:
        payload = self._load()
        if key in payload:
            del payload[key]
            self._save(payload)


class SessionManager:
    """Login, OAuth code exchange and logout around one persisted session."""

    def __init__(self, cache: SessionCache | None = None) -> None:
        self.cache = cache or SessionCache()

    def restore(self) -> AuthSession:
        stored = self.cache.get(AUTH_KEY)
        if not stored or not stored.get("shop") or not stored.get("token"):
            return AuthSession.anonymous()
        logger.debug("Session restored from cache", extra={"shop": stored["shop"]})
        return AuthSession(shop=str(stored["shop"]), token=str(stored["token"]), authenticated=True)

    def stored_credentials(self) -> dict[str, Any] | None:
        return self.cache.get(CREDS_KEY)

    def remember(self, session: AuthSession) -> None:
        self.cache.set(AUTH_KEY, {"shop": session.shop, "token": session.token})

    def login_with_token(self, shop: str, token: str) -> AuthSession:
        token = (token or "").strip()
        if not token:
            raise AuthError("Access token is required.")
        session = AuthSession(shop=normalize_shop(shop), token=token, authenticated=True)
        self.remember(session)
        logger.info("Logged in with access token", extra={"shop": session.shop})
        return session

    def begin_oauth(self, shop: str, client_id: str, client_secret: str, redirect_uri: str) -> str:
        if not (shop or "").strip() or not client_id or not client_secret:
            raise AuthError("Please fill in all fields.")
        shop_url = normalize_shop(shop)
        self.cache.set(CREDS_KEY, {"shop": shop_url, "clientId": client_id, "clientSecret": client_secret})
        query = urlencode({"client_id": client_id, "scope": OAUTH_SCOPES, "redirect_uri": redirect_uri})
        return f"https://{shop_url}/admin/oauth/authorize?{query}"

    def complete_oauth(self, code: str, exchange: TokenExchange) -> AuthSession:
        creds = self.stored_credentials()
        if not creds:
            raise AuthError("No pending authorization; start the login again.")
        if not code:
            raise AuthError("Authorization code is required.")
        shop = str(creds.get("shop") or "")
        access_token = exchange(shop, str(creds.get("clientId") or ""), str(creds.get("clientSecret") or ""), code)
        if not access_token:
            raise AuthError("Failed to exchange token")
        session = AuthSession(shop=shop, token=access_token, authenticated=True)
        self.remember(session)
        logger.info("Authentication successful", extra={"shop": shop})
        return session

    def logout(self) -> AuthSession:
        self.cache.delete(AUTH_KEY)
        self.cache.delete(CREDS_KEY)
        logger.debug("Session cache cleared", extra={"path": str(self.cache.path)})
        return AuthSession.anonymous()
