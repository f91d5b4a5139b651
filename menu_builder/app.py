from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request

from menu_builder.config import SHOP_HEADER, SHOPIFY_API_VERSION, TOKEN_HEADER
from menu_builder.errors import AuthError, TransportError, ValidationError
from menu_builder.export import format_items
from menu_builder.shopify import ShopifyClient, exchange_oauth_code

logger = logging.getLogger(__name__)

app = Flask(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized: Missing Shop or Token headers"


def _json_error(message: str, status: int = 400, **extra: Any):
    payload: dict[str, Any] = {"error": message}
    payload.update(extra)
    return jsonify(payload), status


def _user_errors(errors: list[dict[str, Any]], status: int = 400):
    return jsonify({"userErrors": errors}), status


def _credentials() -> tuple[str, str] | None:
    shop = (request.headers.get(SHOP_HEADER) or "").strip()
    token = (request.headers.get(TOKEN_HEADER) or "").strip()
    if not shop or not token:
        return None
    return shop, token


def _client_or_none() -> ShopifyClient | None:
    creds = _credentials()
    if creds is None:
        logger.warning("Rejected request without credentials", extra={"path": request.path})
        return None
    return ShopifyClient(*creds)


@app.route("/health", methods=["GET"])
def healthcheck():
    return jsonify({"status": "ok", "api_version": SHOPIFY_API_VERSION})


@app.route("/api/create_menu", methods=["POST"])
def api_create_menu():
    client = _client_or_none()
    if client is None:
        return _json_error(UNAUTHORIZED_MESSAGE, 401)

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _user_errors([{"field": [], "message": "Expected a JSON object."}])
    title = payload.get("title")
    handle = payload.get("handle")
    if not isinstance(title, str) or not title.strip():
        return _user_errors([{"field": ["title"], "message": "Menu title is required."}])
    if not isinstance(handle, str) or not handle.strip():
        return _user_errors([{"field": ["handle"], "message": "Menu handle is required."}])

    # Authoritative depth check; nothing reaches Shopify unless it passes.
    try:
        items = format_items(payload.get("items"))
    except ValidationError as exc:
        logger.warning("Rejected menu payload", extra={"shop": client.shop, "field": list(exc.field)})
        return _user_errors([exc.to_user_error()])

    try:
        result = client.create_menu(title.strip(), handle.strip(), items)
    except AuthError as exc:
        logger.warning("Shopify rejected credentials", extra={"shop": client.shop})
        return _json_error(str(exc), 401)
    except TransportError as exc:
        logger.error("Menu creation failed", extra={"shop": client.shop, "error": str(exc)})
        return _json_error(str(exc), 500)

    errors = result.get("userErrors") or []
    if errors:
        normalized = [
            {"field": [str(part) for part in (err.get("field") or [])], "message": str(err.get("message") or "")}
            for err in errors
        ]
        logger.warning("Shopify rejected menu", extra={"shop": client.shop, "errors": len(normalized)})
        return _user_errors(normalized)

    menu = result.get("menu") or {}
    logger.info("Menu created", extra={"shop": client.shop, "handle": menu.get("handle")})
    return jsonify({"menu": {"id": menu.get("id"), "handle": menu.get("handle")}})


@app.route("/api/fetch_collections", methods=["POST"])
def api_fetch_collections():
    client = _client_or_none()
    if client is None:
        return _json_error(UNAUTHORIZED_MESSAGE, 401)
    try:
        return jsonify(client.fetch_collections())
    except AuthError as exc:
        return _json_error(str(exc), 401)
    except TransportError as exc:
        logger.error("Fetch collections failed", extra={"shop": client.shop, "error": str(exc)})
        return _json_error(str(exc), 500)


@app.route("/api/fetch_pages", methods=["POST"])
def api_fetch_pages():
    client = _client_or_none()
    if client is None:
        return _json_error(UNAUTHORIZED_MESSAGE, 401)
    try:
        return jsonify(client.fetch_pages())
    except AuthError as exc:
        return _json_error(str(exc), 401)
    except TransportError as exc:
        logger.error("Fetch pages failed", extra={"shop": client.shop, "error": str(exc)})
        return _json_error(str(exc), 500)


@app.route("/api/oauth_exchange", methods=["POST"])
def api_oauth_exchange():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return _json_error("Missing parameters", 400)
    fields = [str(payload.get(key) or "").strip() for key in ("shop", "client_id", "client_secret", "code")]
    if not all(fields):
        return _json_error("Missing parameters", 400)

    shop, client_id, client_secret, code = fields
    try:
        access_token = exchange_oauth_code(shop, client_id, client_secret, code)
    except TransportError as exc:
        logger.error("Token exchange failed", extra={"shop": shop, "error": str(exc)})
        return _json_error("Failed to exchange token", 500, details=str(exc))
    logger.info("Token exchange succeeded", extra={"shop": shop})
    return jsonify({"access_token": access_token})


if __name__ == "__main__":
    from menu_builder.log_config import setup_logging

    setup_logging()
    app.run(debug=True, port=5001)
