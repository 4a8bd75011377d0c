"""Cart aggregate: ordered, index-addressed line items persisted on every change."""

from __future__ import annotations

import threading
from decimal import Decimal

import structlog

from pos_cart.errors import CartIndexError, PersistenceError
from pos_cart.models import ZERO, ConfiguredLineItem
from pos_cart.persistence import LocalStore

logger = structlog.get_logger(__name__)


class Cart:
    """The in-progress order.

    Positions shift on removal, so callers must not hold on to an index
    across mutations. Each mutation writes the full cart to the store before
    returning; if that write fails the in-memory change is undone and the
    PersistenceError propagates.
    """

    def __init__(self, store: LocalStore, items: list[ConfiguredLineItem] | None = None) -> None:
        self._store = store
        self._items: list[ConfiguredLineItem] = list(items or [])
        self._lock = threading.RLock()

    @classmethod
    def restore(cls, store: LocalStore) -> Cart:
        """Rebuild the cart from its durable snapshot."""
        items = store.load_cart()
        logger.info("cart_restored", lines=len(items))
        return cls(store, items)

    def _commit(self, new_items: list[ConfiguredLineItem]) -> None:
        try:
            self._store.save_cart(new_items)
        except PersistenceError:
            logger.error("cart_persist_failed", lines=len(new_items))
            raise
        self._items = new_items

    def _check_index(self, index: int) -> None:
        if not (0 <= index < len(self._items)):
            raise CartIndexError(index, len(self._items))

    def append(self, item: ConfiguredLineItem) -> None:
        with self._lock:
            self._commit([*self._items, item])
            logger.info("cart_append", position=len(self._items) - 1, product_id=item.product.product_id)

    def remove_at(self, index: int) -> ConfiguredLineItem:
        with self._lock:
            self._check_index(index)
            removed = self._items[index]
            self._commit(self._items[:index] + self._items[index + 1 :])
            logger.info("cart_remove", position=index, product_id=removed.product.product_id)
            return removed

    def replace_at(self, index: int, item: ConfiguredLineItem) -> None:
        with self._lock:
            self._check_index(index)
            new_items = list(self._items)
            new_items[index] = item
            self._commit(new_items)
            logger.info("cart_replace", position=index, product_id=item.product.product_id)

    def clear(self) -> None:
        with self._lock:
            self._commit([])
            logger.info("cart_clear")

    def snapshot(self) -> tuple[ConfiguredLineItem, ...]:
        with self._lock:
            return tuple(self._items)

    def item_at(self, index: int) -> ConfiguredLineItem:
        with self._lock:
            self._check_index(index)
            return self._items[index]

    def total(self) -> Decimal:
        with self._lock:
            return sum((item.total for item in self._items), ZERO)

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def quantity(self) -> int:
        """Units across all lines, shown on the cart badge."""
        with self._lock:
            return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return self.count() == 0

    def __len__(self) -> int:
        return self.count()
