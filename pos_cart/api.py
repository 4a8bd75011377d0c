"""HTTP client for the POS backend."""

from __future__ import annotations

from typing import Any

import requests
import structlog

from pos_cart.config import (
    API_BASE_URL,
    API_HEALTH_PATH,
    API_ORDERS_PATH,
    API_PRODUCTS_PATH,
    API_TIMEOUT_SECONDS,
)
from pos_cart.errors import ApiError
from pos_cart.wire import extract_error_detail

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class PosApiClient:
    """Thin wrapper over ``requests.Session`` with consistent error messages."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        kwargs.setdefault("timeout", self.timeout)
        logger.debug("api_request", method=method, url=url)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            logger.warning("api_timeout", url=url)
            raise ApiError("Request timed out. Check the connection.", url) from exc
        except requests.ConnectionError as exc:
            logger.warning("api_unreachable", url=url, error=str(exc))
            raise ApiError("Cannot reach the server. Check that it is running.", url) from exc
        except requests.RequestException as exc:
            logger.warning("api_request_failed", url=url, error=str(exc))
            raise ApiError(f"Request failed: {exc}", url) from exc

        logger.debug("api_response", url=url, status=response.status_code)
        if not response.ok:
            detail = None
            try:
                detail = extract_error_detail(response.json())
            except ValueError:
                pass
            message = f"Server error: HTTP {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise ApiError(message, url, status=response.status_code)
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("Server returned an invalid JSON body", response.url or "") from exc

    def fetch_catalog(self) -> Any:
        """``GET /api/products``: products, extras, sauces and payment methods."""
        return self._json(self.request("GET", API_PRODUCTS_PATH))

    def create_order(self, payload: dict[str, Any]) -> Any:
        """``POST /api/orders`` and return the decoded response body."""
        return self._json(self.request("POST", API_ORDERS_PATH, json=payload))

    def check_health(self) -> bool:
        try:
            self.request("GET", API_HEALTH_PATH, timeout=min(5.0, self.timeout))
        except ApiError:
            return False
        return True
