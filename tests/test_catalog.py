"""Tests for catalog loading, offline fallback and category filtering."""

import pytest
import requests

from pos_cart.catalog import CatalogCache, categories, filter_by_category
from pos_cart.models import CatalogSnapshot, CatalogStatus, NoticeLevel
from tests.conftest import FakeResponse


class TestCatalogLoad:
    def test_fresh_load_is_saved(self, client, session, store, catalog_body, catalog):
        session.queue("/api/products", FakeResponse(200, catalog_body))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.FRESH
        assert result.snapshot == catalog
        assert result.can_order
        assert result.notice() is None
        assert store.load_catalog() == catalog

    def test_network_failure_serves_stale_copy(self, client, session, store, catalog):
        store.save_catalog(catalog)
        session.queue("/api/products", requests.ConnectionError("refused"))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.STALE
        assert result.snapshot == catalog
        assert result.can_order
        assert "Cannot reach the server" in result.reason
        assert result.notice().level is NoticeLevel.INFO

    def test_network_failure_without_cache_is_unavailable(self, client, session, store):
        session.queue("/api/products", requests.Timeout("slow"))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.UNAVAILABLE
        assert result.snapshot.is_empty()
        assert not result.can_order
        assert result.notice().level is NoticeLevel.BLOCKING

    def test_server_error_falls_back(self, client, session, store, catalog):
        store.save_catalog(catalog)
        session.queue("/api/products", FakeResponse(500, {"error": "database down"}))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.STALE
        assert result.reason.startswith("Server error: HTTP 500: database down")

    def test_empty_product_list_is_a_failure(self, client, session, store):
        session.queue("/api/products", FakeResponse(200, {"products": []}))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.UNAVAILABLE
        assert result.reason == "No products received"

    def test_malformed_body_keeps_previous_cache(self, client, session, store, catalog):
        store.save_catalog(catalog)
        session.queue("/api/products", FakeResponse(200, {"products": [{"name": "no id"}]}))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.STALE
        assert store.load_catalog() == catalog

    @pytest.mark.parametrize("price", [1e30, "Infinity", "-inf", "NaN"])
    def test_unusable_price_keeps_previous_cache(self, client, session, store, catalog, price):
        store.save_catalog(catalog)
        body = {"products": [{"id_product": 1, "name": "Burger", "price": price}]}
        session.queue("/api/products", FakeResponse(200, body))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.STALE
        assert result.snapshot == catalog
        assert store.load_catalog() == catalog

    def test_invalid_json_falls_back(self, client, session, store):
        session.queue("/api/products", FakeResponse(200, ValueError("not json")))
        result = CatalogCache(client, store).load()
        assert result.status is CatalogStatus.UNAVAILABLE
        assert "invalid JSON" in result.reason

    def test_fresh_load_replaces_cache(self, client, session, store, catalog, catalog_body):
        store.save_catalog(CatalogSnapshot(products=catalog.products[:1]))
        session.queue("/api/products", FakeResponse(200, catalog_body))
        CatalogCache(client, store).load()
        assert len(store.load_catalog().products) == 3


class TestCategories:
    def test_no_category_returns_everything(self, catalog):
        assert filter_by_category(catalog, None) == list(catalog.products)

    def test_filter_keeps_catalog_order(self, catalog):
        assert [p.name for p in filter_by_category(catalog, 10)] == ["Burger", "Soda"]

    def test_unknown_category_is_empty(self, catalog):
        assert filter_by_category(catalog, 99) == []

    def test_categories_in_first_seen_order(self, catalog):
        assert categories(catalog) == [10, 20]
