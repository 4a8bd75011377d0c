"""Runtime configuration defaults for the backend, persistence and printing."""

from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


API_BASE_URL = os.environ.get("POS_API_BASE_URL", "http://localhost:8081").rstrip("/")
API_TIMEOUT_SECONDS = _env_float("POS_API_TIMEOUT", 15.0)
API_PRODUCTS_PATH = "/api/products"
API_ORDERS_PATH = "/api/orders"
API_HEALTH_PATH = "/api/health"

DB_PATH = os.environ.get("POS_CART_DB_PATH", "data/pos_cart.db")
DEBUG_LOG_PATH = os.environ.get("POS_CART_DEBUG_LOG", "/tmp/pos-cart-debug.log")

PRINTER_ENABLED = _env_flag("POS_PRINTER_ENABLED", False)
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 40
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 16
