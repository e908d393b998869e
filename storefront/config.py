"""Runtime configuration defaults for the API client, storage and logging."""

from __future__ import annotations

import os

API_URL = os.environ.get("STOREFRONT_API_URL", "http://localhost:8000").rstrip("/")
API_TIMEOUT_SECONDS = 20

DB_PATH = os.environ.get("STOREFRONT_DB_PATH", "data/storefront.db")
DEBUG_LOG_PATH = os.environ.get("STOREFRONT_DEBUG_LOG", "/tmp/storefront-debug.log")

# Keys mirror the browser local-storage keys of the web storefront.
CART_STORAGE_KEY = "cart-storage"
WAITER_AUTH_STORAGE_KEY = "waiter-auth-storage"
TABLE_CART_STORAGE_KEY = "table-cart-storage"
STORAGE_SCHEMA_VERSION = 1

PROMO_ITEM_PREFIX = "promo-"
DELIVERY_FEE = 0
CURRENCY_PREFIX = "S/"

# Slots with this many seats left or fewer are shown as medium availability.
SLOT_MEDIUM_CAPACITY = 4
