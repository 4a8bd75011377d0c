"""Tests for the backend HTTP client."""

import pytest
import requests

from pos_cart.errors import ApiError
from tests.conftest import FakeResponse


class TestPosApiClient:
    def test_sets_json_headers(self, client, session):
        assert session.headers["Accept"] == "application/json"
        assert session.headers["Content-Type"] == "application/json"

    def test_fetch_catalog_uses_timeout(self, client, session, catalog_body):
        session.queue("/api/products", FakeResponse(200, catalog_body))
        assert client.fetch_catalog() == catalog_body
        method, url, kwargs = session.calls[0]
        assert (method, url) == ("GET", "http://pos.test/api/products")
        assert kwargs["timeout"] == 1.0

    def test_timeout_message(self, client, session):
        session.queue("/api/orders", requests.Timeout("slow"))
        with pytest.raises(ApiError) as exc_info:
            client.create_order({})
        assert exc_info.value.reason == "Request timed out. Check the connection."
        assert exc_info.value.url == "http://pos.test/api/orders"
        assert exc_info.value.status is None

    def test_http_error_carries_status(self, client, session):
        session.queue("/api/orders", FakeResponse(503, ValueError("html page")))
        with pytest.raises(ApiError) as exc_info:
            client.create_order({})
        assert exc_info.value.status == 503
        assert exc_info.value.reason == "Server error: HTTP 503"

    def test_other_request_failures(self, client, session):
        session.queue("/api/products", requests.TooManyRedirects("loop"))
        with pytest.raises(ApiError) as exc_info:
            client.fetch_catalog()
        assert exc_info.value.reason.startswith("Request failed:")

    def test_health_check(self, client, session):
        session.queue("/api/health", FakeResponse(200, {"status": "ok"}))
        assert client.check_health()

    def test_health_check_offline(self, client, session):
        session.queue("/api/health", requests.ConnectionError("refused"))
        assert not client.check_health()
