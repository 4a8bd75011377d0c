"""SQLite persistence for the catalog snapshot, the cart and order history."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import structlog

from pos_cart.config import DB_PATH
from pos_cart.errors import CatalogFormatError, PersistenceError
from pos_cart.models import CatalogSnapshot, ConfiguredLineItem, OrderRecord
from pos_cart.wire import catalog_to_dict, item_from_dict, item_to_dict, parse_catalog, record_from_dict, record_to_dict

logger = structlog.get_logger(__name__)

CATALOG_KEY = "catalog"
CART_KEY = "cart"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalStore:
    """Durable local storage. Every write is one transaction."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)
        self.bootstrap_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"cannot open {self.db_path}: {exc}") from exc
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        conn = self._connect()
        try:
            with conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS orders (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        order_id TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        payload TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS ticket_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        order_id TEXT NOT NULL,
                        status TEXT NOT NULL,
                        detail TEXT,
                        logged_at TEXT NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_ticket_log_order_id
                        ON ticket_log(order_id);
                    """
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot bootstrap schema: {exc}") from exc
        finally:
            conn.close()

    def _put(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, _utc_now_iso()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot write {key!r}: {exc}") from exc
        finally:
            conn.close()

    def _get(self, key: str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot read {key!r}: {exc}") from exc
        finally:
            conn.close()
        return None if row is None else str(row[0])

    def save_catalog(self, snapshot: CatalogSnapshot) -> None:
        """Replace the cached catalog; all four lists land in one row."""
        self._put(CATALOG_KEY, json.dumps(catalog_to_dict(snapshot), ensure_ascii=False))

    def load_catalog(self) -> CatalogSnapshot | None:
        raw = self._get(CATALOG_KEY)
        if raw is None:
            return None
        try:
            return parse_catalog(json.loads(raw))
        except (ValueError, CatalogFormatError) as exc:
            logger.warning("catalog_cache_corrupt", error=str(exc))
            return None

    def save_cart(self, items: Iterable[ConfiguredLineItem]) -> None:
        self._put(CART_KEY, json.dumps([item_to_dict(item) for item in items], ensure_ascii=False))

    def load_cart(self) -> list[ConfiguredLineItem]:
        raw = self._get(CART_KEY)
        if raw is None:
            return []
        try:
            return [item_from_dict(entry) for entry in json.loads(raw)]
        except (ValueError, KeyError, TypeError, CatalogFormatError) as exc:
            raise PersistenceError(f"stored cart is unreadable: {exc}") from exc

    def append_order(self, record: OrderRecord) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO orders (order_id, created_at, payload) VALUES (?, ?, ?)",
                    (str(record.order_id), record.created_at, json.dumps(record_to_dict(record), ensure_ascii=False)),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot append order {record.order_id}: {exc}") from exc
        finally:
            conn.close()

    def _query_orders(self, sql: str, params: tuple = ()) -> list[OrderRecord]:
        conn = self._connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot read order history: {exc}") from exc
        finally:
            conn.close()
        try:
            return [record_from_dict(json.loads(row[0])) for row in rows]
        except (ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"stored order history is unreadable: {exc}") from exc

    def load_orders(self) -> list[OrderRecord]:
        """Whole history, oldest first."""
        return self._query_orders("SELECT payload FROM orders ORDER BY seq")

    def recent_orders(self, limit: int = 20) -> list[OrderRecord]:
        """The last ``limit`` orders, newest first."""
        return self._query_orders("SELECT payload FROM orders ORDER BY seq DESC LIMIT ?", (limit,))

    def record_ticket_status(self, order_id: int | str, status: str, detail: str | None = None) -> None:
        """Log the print outcome for an order ticket."""
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO ticket_log (order_id, status, detail, logged_at) VALUES (?, ?, ?, ?)",
                    (str(order_id), status, detail, _utc_now_iso()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot log ticket status for {order_id}: {exc}") from exc
        finally:
            conn.close()

    def ticket_status(self, order_id: int | str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT status FROM ticket_log WHERE order_id = ? ORDER BY id DESC LIMIT 1", (str(order_id),)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot read ticket status for {order_id}: {exc}") from exc
        finally:
            conn.close()
        return None if row is None else str(row[0])
