from __future__ import annotations

import logging
import re
from typing import Any

import requests

from menu_builder.config import SHOPIFY_API_VERSION
from menu_builder.errors import AuthError, TransportError

logger = logging.getLogger(__name__)

COLLECTIONS_QUERY = """
{
  collections(first: 250) {
    edges {
      node {
        id
        title
        handle
        productsCount {
          count
        }
      }
    }
  }
}
"""

PAGES_QUERY = """
{
  pages(first: 250) {
    edges {
      node {
        id
        title
        handle
      }
    }
  }
}
"""

CREATE_MENU_MUTATION = """
mutation CreateMenu($title: String!, $handle: String!, $items: [MenuItemCreateInput!]!) {
  menuCreate(title: $title, handle: $handle, items: $items) {
    menu { id handle }
    userErrors { field message }
  }
}
"""


def _clean_shop(shop: str) -> str:
    return re.sub(r"^https?://", "", (shop or "").strip()).rstrip("/")


def _json_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise TransportError(f"Invalid JSON from {response.url} (HTTP {response.status_code})") from exc


class ShopifyClient:
    """Admin GraphQL API client for one store; no retries, no timeouts."""

    def __init__(
        self,
        shop: str,
        access_token: str,
        *,
        api_version: str = SHOPIFY_API_VERSION,
        session: requests.Session | None = None,
    ) -> None:
        if not shop or not access_token:
            raise AuthError("Unauthorized: Missing Shop or Token headers")
        self.shop = _clean_shop(shop)
        self.access_token = access_token
        self.api_version = api_version
        self.session = session or requests.Session()

    @property
    def graphql_url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        try:
            response = self.session.post(self.graphql_url, json=payload, headers=headers)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

        if response.status_code in (401, 403):
            raise AuthError(f"Shopify rejected the access token (HTTP {response.status_code})")
        result = _json_body(response)
        if not isinstance(result, dict):
            raise TransportError(f"Unexpected response from Shopify (HTTP {response.status_code})")
        if result.get("errors"):
            raise TransportError(str(result["errors"]))
        if response.status_code >= 400:
            raise TransportError(f"Shopify request failed (HTTP {response.status_code})")
        return result.get("data") or {}

    def fetch_collections(self) -> list[dict[str, Any]]:
        data = self.graphql(COLLECTIONS_QUERY)
        edges = (data.get("collections") or {}).get("edges") or []
        collections: list[dict[str, Any]] = []
        for edge in edges:
            node = dict(edge.get("node") or {})
            count = node.get("productsCount")
            node["productsCount"] = count.get("count", 0) if isinstance(count, dict) else 0
            collections.append(node)
        return collections

    def fetch_pages(self) -> list[dict[str, Any]]:
        data = self.graphql(PAGES_QUERY)
        edges = (data.get("pages") or {}).get("edges") or []
        return [{**(edge.get("node") or {}), "type": "PAGE"} for edge in edges]

    def create_menu(self, title: str, handle: str, items: list[dict[str, Any]]) -> dict[str, Any]:
        data = self.graphql(CREATE_MENU_MUTATION, {"title": title, "handle": handle, "items": items})
        result = data.get("menuCreate")
        if not isinstance(result, dict):
            raise TransportError("Shopify returned no menuCreate result.")
        return {"menu": result.get("menu"), "userErrors": result.get("userErrors") or []}


def exchange_oauth_code(
    shop: str,
    client_id: str,
    client_secret: str,
    code: str,
    *,
    session: requests.Session | None = None,
) -> str:
    """Trade an OAuth authorization code for an Admin API access token."""
    http = session or requests.Session()
    url = f"https://{_clean_shop(shop)}/admin/oauth/access_token"
    try:
        response = http.post(
            url,
            json={"client_id": client_id, "client_secret": client_secret, "code": code},
            headers={"Content-Type": "application/json"},
        )
    except requests.RequestException as exc:
        raise TransportError(str(exc)) from exc

    data = _json_body(response)
    if not response.ok or not isinstance(data, dict):
        description = data.get("error_description") if isinstance(data, dict) else None
        raise TransportError(description or "Failed to exchange token")
    token = data.get("access_token")
    if not token:
        raise TransportError("Failed to exchange token")
    return str(token)
