from __future__ import annotations

import structlog

from pos_cart.api import PosApiClient
from pos_cart.cart import Cart
from pos_cart.cart_app import CartApp
from pos_cart.catalog import CatalogCache
from pos_cart.config import DB_PATH, PRINTER_ENABLED
from pos_cart.errors import PersistenceError
from pos_cart.log import configure_logging
from pos_cart.persistence import LocalStore
from pos_cart.printer import check_printer_dependencies, print_order_ticket
from pos_cart.workflow import OrderWorkflow

logger = structlog.get_logger(__name__)


def build_app(store: LocalStore, client: PosApiClient) -> CartApp:
    try:
        cart = Cart.restore(store)
    except PersistenceError as exc:
        logger.error("cart_restore_failed", error=str(exc))
        cart = Cart(store)

    printer = None
    printer_status = "printer off"
    if PRINTER_ENABLED:
        _, message = check_printer_dependencies()
        printer_status = message
        printer = print_order_ticket

    workflow = OrderWorkflow(cart, client, store, printer=printer)
    return CartApp(CatalogCache(client, store), cart, workflow, client, printer_status=printer_status)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    store = LocalStore(DB_PATH)
    build_app(store, PosApiClient()).run()


if __name__ == "__main__":
    main()
