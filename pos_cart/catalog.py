"""Catalog fetch with fallback to the last good local snapshot."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pos_cart.api import PosApiClient
from pos_cart.errors import ApiError, CatalogFormatError, PersistenceError
from pos_cart.models import CatalogSnapshot, CatalogStatus, Notice, NoticeLevel, Product
from pos_cart.persistence import LocalStore
from pos_cart.wire import parse_catalog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CatalogLoad:
    """Result of CatalogCache.load(), tagged with where the data came from."""

    snapshot: CatalogSnapshot
    status: CatalogStatus
    reason: str | None = None

    @property
    def can_order(self) -> bool:
        return self.status is not CatalogStatus.UNAVAILABLE

    def notice(self) -> Notice | None:
        if self.status is CatalogStatus.STALE:
            return Notice(NoticeLevel.INFO, f"Offline: showing the last saved catalog ({self.reason})")
        if self.status is CatalogStatus.UNAVAILABLE:
            return Notice(NoticeLevel.BLOCKING, f"Catalog unavailable, ordering is not possible ({self.reason})")
        return None


class CatalogCache:
    def __init__(self, client: PosApiClient, store: LocalStore) -> None:
        self.client = client
        self.store = store

    def load(self) -> CatalogLoad:
        try:
            snapshot = parse_catalog(self.client.fetch_catalog())
            if snapshot.is_empty():
                raise CatalogFormatError("No products received")
        except (ApiError, CatalogFormatError) as exc:
            logger.warning("catalog_fetch_failed", error=str(exc))
            return self._fallback(str(exc))

        try:
            self.store.save_catalog(snapshot)
        except PersistenceError as exc:
            # The fresh catalog is still usable; only the offline copy is stale.
            logger.error("catalog_cache_write_failed", error=str(exc))
        logger.info(
            "catalog_loaded",
            products=len(snapshot.products),
            extras=len(snapshot.extras),
            sauces=len(snapshot.sauces),
            payment_methods=len(snapshot.payment_methods),
        )
        return CatalogLoad(snapshot, CatalogStatus.FRESH)

    def _fallback(self, reason: str) -> CatalogLoad:
        try:
            cached = self.store.load_catalog()
        except PersistenceError as exc:
            logger.error("catalog_cache_read_failed", error=str(exc))
            cached = None

        if cached is not None and not cached.is_empty():
            logger.info("catalog_served_stale", products=len(cached.products))
            return CatalogLoad(cached, CatalogStatus.STALE, reason)

        logger.warning("catalog_unavailable", reason=reason)
        return CatalogLoad(CatalogSnapshot(), CatalogStatus.UNAVAILABLE, reason)


def filter_by_category(snapshot: CatalogSnapshot, category_id: int | None) -> list[Product]:
    """All products when category_id is None, else the matching ones in snapshot order."""
    if category_id is None:
        return list(snapshot.products)
    return [product for product in snapshot.products if product.category_id == category_id]


def categories(snapshot: CatalogSnapshot) -> list[int]:
    seen: list[int] = []
    for product in snapshot.products:
        if product.category_id is not None and product.category_id not in seen:
            seen.append(product.category_id)
    return seen
