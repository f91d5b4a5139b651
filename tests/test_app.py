from __future__ import annotations

from typing import Any

import pytest

from menu_builder import app as app_module
from menu_builder.errors import AuthError, TransportError
from menu_builder.export import DEPTH_LIMIT_MESSAGE

HEADERS = {"X-Shopify-Shop": "my-store.myshopify.com", "X-Shopify-Token": "shpat_1"}


class FakeShopifyClient:
    instances: list["FakeShopifyClient"] = []
    create_result: Any = {"menu": {"id": "gid://shopify/Menu/1", "handle": "main"}, "userErrors": []}
    collections: Any = []
    pages: Any = []

    def __init__(self, shop: str, access_token: str) -> None:
        self.shop = shop
        self.access_token = access_token
        self.created: list[tuple[str, str, list[dict[str, Any]]]] = []
        FakeShopifyClient.instances.append(self)

    def _answer(self, value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    def create_menu(self, title: str, handle: str, items: list[dict[str, Any]]) -> Any:
        self.created.append((title, handle, items))
        return self._answer(FakeShopifyClient.create_result)

    def fetch_collections(self) -> Any:
        return self._answer(FakeShopifyClient.collections)

    def fetch_pages(self) -> Any:
        return self._answer(FakeShopifyClient.pages)


@pytest.fixture
def upstream(monkeypatch):
    FakeShopifyClient.instances = []
    FakeShopifyClient.create_result = {"menu": {"id": "gid://shopify/Menu/1", "handle": "main"}, "userErrors": []}
    FakeShopifyClient.collections = []
    FakeShopifyClient.pages = []
    monkeypatch.setattr(app_module, "ShopifyClient", FakeShopifyClient)
    return FakeShopifyClient


@pytest.fixture
def client():
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()


def _item(title: str, *children: dict[str, Any]) -> dict[str, Any]:
    return {"title": title, "type": "HTTP", "url": "#", "items": list(children)}


def _body(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"title": "Main menu", "handle": "main", "items": items}


def _created(upstream) -> list:
    return [call for inst in upstream.instances for call in inst.created]


@pytest.mark.parametrize(
    "headers",
    [{}, {"X-Shopify-Shop": "my-store.myshopify.com"}, {"X-Shopify-Token": "shpat_1"}],
)
def test_create_menu_requires_both_credentials(client, upstream, headers):
    response = client.post("/api/create_menu", headers=headers, data="not json at all")

    assert response.status_code == 401
    assert "Unauthorized" in response.get_json()["error"]
    assert upstream.instances == []


def test_create_menu_success(client, upstream):
    items = [_item("Men", _item("Shirts", _item("Casual")))]
    response = client.post("/api/create_menu", headers=HEADERS, json=_body(items))

    assert response.status_code == 200
    assert response.get_json() == {"menu": {"id": "gid://shopify/Menu/1", "handle": "main"}}
    assert _created(upstream) == [("Main menu", "main", items)]
    assert upstream.instances[0].shop == "my-store.myshopify.com"


def test_create_menu_too_deep_never_reaches_upstream(client, upstream):
    items = [_item("Men", _item("Shirts", _item("Casual", _item("Linen"))))]
    response = client.post("/api/create_menu", headers=HEADERS, json=_body(items))

    assert response.status_code == 400
    assert response.get_json() == {
        "userErrors": [
            {"field": ["items", "0", "items", "0", "items", "0", "items"], "message": DEPTH_LIMIT_MESSAGE}
        ]
    }
    assert _created(upstream) == []


def test_create_menu_strips_unknown_fields_before_forwarding(client, upstream):
    items = [{"id": "local-1", "title": "Shirts", "type": "COLLECTION", "url": "/collections/shirts",
              "resourceId": "gid://shopify/Collection/1", "items": []}]
    client.post("/api/create_menu", headers=HEADERS, json=_body(items))

    forwarded = _created(upstream)[0][2]
    assert forwarded == [{"title": "Shirts", "type": "COLLECTION", "url": "/collections/shirts",
                          "resourceId": "gid://shopify/Collection/1", "items": []}]


@pytest.mark.parametrize(
    "body, field",
    [
        ({"handle": "main", "items": []}, ["title"]),
        ({"title": "Main", "items": []}, ["handle"]),
        ({"title": "Main", "handle": "main"}, ["items"]),
        ({"title": "Main", "handle": "main", "items": [{"type": "HTTP", "url": "#"}]}, ["items", "0", "title"]),
    ],
)
def test_create_menu_missing_fields(client, upstream, body, field):
    response = client.post("/api/create_menu", headers=HEADERS, json=body)

    assert response.status_code == 400
    assert response.get_json()["userErrors"][0]["field"] == field
    assert _created(upstream) == []


def test_create_menu_translates_platform_user_errors(client, upstream):
    upstream.create_result = {"menu": None, "userErrors": [{"field": ["handle"], "message": "Handle has already been taken"}]}
    response = client.post("/api/create_menu", headers=HEADERS, json=_body([_item("Men")]))

    assert response.status_code == 400
    assert response.get_json() == {"userErrors": [{"field": ["handle"], "message": "Handle has already been taken"}]}


def test_create_menu_transport_failure(client, upstream):
    upstream.create_result = TransportError("connection reset")
    response = client.post("/api/create_menu", headers=HEADERS, json=_body([_item("Men")]))

    assert response.status_code == 500
    assert response.get_json() == {"error": "connection reset"}


def test_create_menu_rejected_token(client, upstream):
    upstream.create_result = AuthError("Shopify rejected the access token (HTTP 401)")
    response = client.post("/api/create_menu", headers=HEADERS, json=_body([_item("Men")]))

    assert response.status_code == 401


def test_create_menu_rejects_get(client, upstream):
    assert client.get("/api/create_menu", headers=HEADERS).status_code == 405


def test_fetch_collections_and_pages(client, upstream):
    upstream.collections = [{"id": "c1", "title": "Shirts", "handle": "shirts", "productsCount": 3}]
    upstream.pages = [{"id": "p1", "title": "About", "handle": "about", "type": "PAGE"}]

    collections = client.post("/api/fetch_collections", headers=HEADERS)
    pages = client.post("/api/fetch_pages", headers=HEADERS)

    assert collections.get_json() == upstream.collections
    assert pages.get_json() == upstream.pages


def test_fetch_routes_require_credentials(client, upstream):
    assert client.post("/api/fetch_collections").status_code == 401
    assert client.post("/api/fetch_pages", headers={"X-Shopify-Shop": "s"}).status_code == 401


def test_fetch_collections_upstream_failure(client, upstream):
    upstream.collections = TransportError("[{'message': 'Throttled'}]")
    response = client.post("/api/fetch_collections", headers=HEADERS)

    assert response.status_code == 500
    assert "Throttled" in response.get_json()["error"]


def test_oauth_exchange(client, monkeypatch):
    calls = []

    def fake_exchange(shop, client_id, client_secret, code):
        calls.append((shop, client_id, client_secret, code))
        return "shpat_new"

    monkeypatch.setattr(app_module, "exchange_oauth_code", fake_exchange)
    body = {"shop": "s.myshopify.com", "client_id": "id", "client_secret": "secret", "code": "abc"}
    response = client.post("/api/oauth_exchange", json=body)

    assert response.status_code == 200
    assert response.get_json() == {"access_token": "shpat_new"}
    assert calls == [("s.myshopify.com", "id", "secret", "abc")]


def test_oauth_exchange_missing_parameters(client):
    response = client.post("/api/oauth_exchange", json={"shop": "s.myshopify.com", "code": "abc"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Missing parameters"}


def test_oauth_exchange_failure(client, monkeypatch):
    def failing(*args):
        raise TransportError("Code was used")

    monkeypatch.setattr(app_module, "exchange_oauth_code", failing)
    body = {"shop": "s.myshopify.com", "client_id": "id", "client_secret": "secret", "code": "abc"}
    response = client.post("/api/oauth_exchange", json=body)

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to exchange token", "details": "Code was used"}


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok", "api_version": app_module.SHOPIFY_API_VERSION}
