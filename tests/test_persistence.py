"""Tests for the SQLite-backed local store."""

from decimal import Decimal

import pytest

from pos_cart.configuration import configure
from pos_cart.errors import PersistenceError
from pos_cart.models import OrderRecord, Selection
from pos_cart.persistence import CART_KEY, LocalStore
from pos_cart.workflow import build_order_document


class TestLocalStore:
    def test_creates_database_file(self, tmp_path):
        path = tmp_path / "nested" / "pos.db"
        LocalStore(path)
        assert path.exists()

    def test_empty_store(self, store):
        assert store.load_catalog() is None
        assert store.load_cart() == []
        assert store.load_orders() == []
        assert store.ticket_status(1) is None

    def test_catalog_round_trip(self, store, catalog):
        store.save_catalog(catalog)
        assert store.load_catalog() == catalog

    def test_survives_reopen(self, tmp_path, catalog):
        path = tmp_path / "pos.db"
        LocalStore(path).save_catalog(catalog)
        assert LocalStore(path).load_catalog() == catalog

    def test_corrupt_catalog_reads_as_missing(self, store):
        store._put("catalog", "{not json")
        assert store.load_catalog() is None

    def test_cart_round_trip(self, store, catalog):
        items = [
            configure(catalog.product(1), Selection(variant_id=11, extras={101: 3}, sauces={201}), catalog),
            configure(catalog.product(2), Selection(flavor_id=21, comment="hot", quantity=4), catalog),
        ]
        store.save_cart(items)
        loaded = store.load_cart()
        assert loaded == items
        assert [item.total for item in loaded] == [Decimal("5.30"), Decimal("30.00")]

    def test_unreadable_cart_raises(self, store):
        store._put(CART_KEY, '[{"quantity": 1}]')
        with pytest.raises(PersistenceError):
            store.load_cart()

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            '{"order_id": 1}',
            "[]",
            '{"order_id": 1, "created_at": "x", "total": "NaN", "document": {"id_payment_method": 1}}',
        ],
    )
    def test_unreadable_order_history_raises(self, store, payload):
        conn = store._connect()
        with conn:
            conn.execute(
                "INSERT INTO orders (order_id, created_at, payload) VALUES (?, ?, ?)", ("1", "2024-01-01", payload)
            )
        conn.close()
        with pytest.raises(PersistenceError):
            store.load_orders()

    def test_orders_are_appended_in_order(self, store, catalog):
        item = configure(catalog.product(3), Selection(), catalog)
        for order_id in (1, "B-2"):
            store.append_order(
                OrderRecord(
                    order_id=order_id,
                    document=build_order_document([item], "Ana", 1),
                    created_at="2024-01-01T00:00:00+00:00",
                    total=item.total,
                )
            )
        orders = store.load_orders()
        assert [order.order_id for order in orders] == [1, "B-2"]
        assert orders[0].total == Decimal("1.10")
        assert orders[0].document.items[0].product_id == 3

    def test_recent_orders_newest_first(self, store, catalog):
        item = configure(catalog.product(3), Selection(), catalog)
        for order_id in range(1, 6):
            store.append_order(
                OrderRecord(
                    order_id=order_id,
                    document=build_order_document([item], "Ana", 1),
                    created_at="2024-01-01T00:00:00+00:00",
                    total=item.total,
                )
            )
        assert [order.order_id for order in store.recent_orders(limit=3)] == [5, 4, 3]

    def test_latest_ticket_status_wins(self, store):
        store.record_ticket_status(9, "PRINT_FAILED", "paper out")
        store.record_ticket_status(9, "PRINTED")
        assert store.ticket_status(9) == "PRINTED"

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(PersistenceError):
            LocalStore(blocker / "pos.db")
