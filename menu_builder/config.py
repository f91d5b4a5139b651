from __future__ import annotations

import os
from pathlib import Path


DEFAULT_API_VERSION = "2024-01"
DEFAULT_OAUTH_SCOPES = "read_products,write_content,read_content"
DEFAULT_CACHE_FILE = "~/.menu_builder_cache.json"
DEFAULT_GATEWAY_URL = "http://127.0.0.1:5001"
DEFAULT_MENU_TITLE_TEXT = "Mega Menu (From App)"
DEFAULT_WORKERS = 4

# Hard limit of the destination platform's navigation feature (root = depth 1).
MAX_MENU_DEPTH = 3
MENU_HANDLE_PREFIX = "mega-menu-app-"
CUSTOM_LINK_PLACEHOLDER = "#"

SHOP_HEADER = "X-Shopify-Shop"
TOKEN_HEADER = "X-Shopify-Token"


def _cache_path() -> Path:
    env = os.environ.get("MENU_BUILDER_CACHE_PATH")
    p = Path(env or DEFAULT_CACHE_FILE).expanduser()
    return p if p.is_absolute() else (Path.cwd() / p)


SHOPIFY_API_VERSION = os.environ.get("SHOPIFY_API_VERSION", DEFAULT_API_VERSION)
OAUTH_SCOPES = os.environ.get("SHOPIFY_OAUTH_SCOPES", DEFAULT_OAUTH_SCOPES)
SESSION_CACHE_PATH = _cache_path()
GATEWAY_URL = os.environ.get("MENU_GATEWAY_URL", DEFAULT_GATEWAY_URL).rstrip("/")
DEFAULT_MENU_TITLE = os.environ.get("MENU_BUILDER_MENU_TITLE", DEFAULT_MENU_TITLE_TEXT)
EXPORT_WORKERS = int(os.environ.get("MENU_BUILDER_WORKERS", str(DEFAULT_WORKERS)))
