from __future__ import annotations

from typing import Any

import pytest

from pos_cart.api import PosApiClient
from pos_cart.models import CatalogSnapshot
from pos_cart.persistence import LocalStore
from pos_cart.wire import parse_catalog

CATALOG_BODY: dict[str, Any] = {
    "products": [
        {
            "id_product": 1,
            "name": "Burger",
            "price": 5,
            "id_category": 10,
            "options": [
                {"id_variant": 11, "size": "Small", "price": 5},
                {"id_variant": 12, "size": "Large", "price": 8},
            ],
            "flavors": [],
        },
        {
            "id_product": 2,
            "name": "Wings",
            "price": "7.50",
            "id_category": 20,
            "options": [],
            "flavors": [
                {"id_flavor": 21, "name": "BBQ"},
                {"id_flavor": 22, "name": "Buffalo"},
            ],
        },
        {
            "id_product": 3,
            "name": "Soda",
            "price": "1.10",
            "id_category": 10,
        },
    ],
    "extras": [
        {"id_extra": 100, "name": "Cheese", "price": 1},
        {"id_extra": 101, "name": "Bacon", "price": "0.10"},
    ],
    "sauces": [
        {"id_sauce": 200, "name": "Ketchup"},
        {"id_sauce": 201, "name": "Mayo"},
    ],
    "paymentMethods": [
        {"id_payment_method": 1, "name": "Cash"},
        {"id_payment_method": 2, "name": "Card"},
    ],
}


class FakeResponse:
    """Enough of ``requests.Response`` for PosApiClient."""

    def __init__(self, status_code: int = 200, body: Any = None, url: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.url = url

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Records requests and replays queued responses or exceptions per path."""

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.replies: dict[str, list[Any]] = {}

    def queue(self, path: str, reply: Any) -> None:
        self.replies.setdefault(path, []).append(reply)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        path = "/" + url.split("/", 3)[-1]
        queued = self.replies.get(path)
        if not queued:
            raise AssertionError(f"unexpected request {method} {url}")
        reply = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(reply, Exception):
            raise reply
        reply.url = url
        return reply

    def paths(self, method: str | None = None) -> list[str]:
        return ["/" + url.split("/", 3)[-1] for m, url, _ in self.calls if method is None or m == method]


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "pos_cart.db")


@pytest.fixture
def catalog_body() -> dict[str, Any]:
    return CATALOG_BODY


@pytest.fixture
def catalog() -> CatalogSnapshot:
    return parse_catalog(CATALOG_BODY)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session) -> PosApiClient:
    return PosApiClient(base_url="http://pos.test", timeout=1.0, session=session)
