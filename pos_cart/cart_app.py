"""Main Textual app class."""

from __future__ import annotations

from rich.text import Text
import structlog
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Header, Static

from pos_cart.api import PosApiClient
from pos_cart.cart import Cart
from pos_cart.catalog import CatalogCache, CatalogLoad, categories, filter_by_category
from pos_cart.checkout_modal import CheckoutDetails, CheckoutModal
from pos_cart.configuration import default_selection, selection_for
from pos_cart.configure_modal import ConfigureModal
from pos_cart.errors import PersistenceError
from pos_cart.models import CatalogSnapshot, CatalogStatus, ConfiguredLineItem, Notice, NoticeLevel, Product, format_money
from pos_cart.orders_modal import OrdersModal
from pos_cart.rendering import format_line_label, format_product_row, format_selection_tags, notice_style
from pos_cart.workflow import OrderWorkflow, WorkflowState

logger = structlog.get_logger(__name__)


class CartApp(App):
    """A Textual app for building and submitting point-of-sale orders."""

    TITLE = "POS Cart"
    SUB_TITLE = "Orders"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #products-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #cart-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #product-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-total {
        height: 1;
        margin-top: 1;
        text-style: bold;
    }

    #status-bar {
        height: 3;
        border: heavy $secondary;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    focus_pane = reactive("products")
    product_index = reactive(0)
    cart_index = reactive(None)

    BINDINGS = [
        ("tab", "switch_pane", "Switch pane"),
        ("j", "move(1)", "Next"),
        ("k", "move(-1)", "Previous"),
        ("down", "move(1)", "Next"),
        ("up", "move(-1)", "Previous"),
        ("c", "cycle_category", "Category"),
        ("enter", "activate", "Add / edit"),
        ("a", "add_product", "Add"),
        ("e", "edit_selected", "Edit line"),
        ("d", "delete_selected", "Delete line"),
        ("o", "show_orders", "Orders"),
        Binding("ctrl+s", "checkout", "Checkout", priority=True),
        Binding("ctrl+r", "reload_catalog", "Reload catalog", priority=True),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        catalog_cache: CatalogCache,
        cart: Cart,
        workflow: OrderWorkflow,
        client: PosApiClient,
        printer_status: str = "",
    ) -> None:
        super().__init__()
        self.catalog_cache = catalog_cache
        self.cart = cart
        self.workflow = workflow
        self.client = client
        self.printer_status = printer_status
        self.catalog_load: CatalogLoad | None = None
        self.category_id: int | None = None
        self.online: bool | None = None
        self.notice: Notice | None = None
        self.workflow.notify = self._notice_from_worker

    @property
    def catalog(self) -> CatalogSnapshot:
        if self.catalog_load is None:
            return CatalogSnapshot()
        return self.catalog_load.snapshot

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="products-pane"):
                yield Static("Products", id="products-title", classes="pane-title")
                yield Static("(loading catalog)", id="product-list")
            with Vertical(id="cart-pane"):
                yield Static("Cart", id="cart-title", classes="pane-title")
                yield Static("(cart is empty)", id="cart-list")
                yield Static(id="cart-total")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        logger.info("app_mount", cart_lines=self.cart.count())
        self._refresh_all()
        self._load_catalog()

    # Notices

    def show_notice(self, notice: Notice | None) -> None:
        self.notice = notice
        self._refresh_status()

    def _notice_from_worker(self, notice: Notice) -> None:
        self.call_from_thread(self.show_notice, notice)

    # Catalog

    @work(thread=True, exclusive=True, group="catalog")
    def _load_catalog(self) -> None:
        result = self.catalog_cache.load()
        online = True if result.status is CatalogStatus.FRESH else self.client.check_health()
        self.call_from_thread(self._apply_catalog, result, online)

    def _apply_catalog(self, result: CatalogLoad, online: bool) -> None:
        self.catalog_load = result
        self.online = online
        if self.category_id not in categories(result.snapshot):
            self.category_id = None
        if result.snapshot.payment_methods:
            self.workflow.default_payment_method_id = result.snapshot.payment_methods[0].payment_method_id
        self.product_index = 0
        self.show_notice(result.notice())
        self._refresh_all()

    def action_reload_catalog(self) -> None:
        self.show_notice(Notice(NoticeLevel.INFO, "Reloading catalog"))
        self._load_catalog()

    def _visible_products(self) -> list[Product]:
        return filter_by_category(self.catalog, self.category_id)

    def action_cycle_category(self) -> None:
        ids = categories(self.catalog)
        if not ids:
            return
        if self.category_id is None:
            self.category_id = ids[0]
        else:
            position = ids.index(self.category_id) + 1
            self.category_id = ids[position] if position < len(ids) else None
        self.product_index = 0
        self._refresh_products()

    # Navigation

    def action_switch_pane(self) -> None:
        self.focus_pane = "cart" if self.focus_pane == "products" else "products"
        if self.focus_pane == "cart" and self.cart_index is None and self.cart.count():
            self.cart_index = 0
        self._refresh_all()

    def action_move(self, delta: int) -> None:
        if self.focus_pane == "products":
            products = self._visible_products()
            if products:
                self.product_index = (self.product_index + delta) % len(products)
            self._refresh_products()
            return

        count = self.cart.count()
        if not count:
            return
        if self.cart_index is None:
            self.cart_index = 0 if delta > 0 else count - 1
        else:
            self.cart_index = (self.cart_index + delta) % count
        self._refresh_cart()

    def action_activate(self) -> None:
        if self.focus_pane == "cart":
            self.action_edit_selected()
            return
        self._configure_selected_product()

    def action_add_product(self) -> None:
        self._configure_selected_product()

    # Cart mutations

    def _cart_locked(self) -> bool:
        if self.workflow.state is not WorkflowState.IDLE:
            self.show_notice(Notice(NoticeLevel.INFO, "Order is being submitted, please wait"))
            return True
        return False

    def _configure_selected_product(self) -> None:
        if self.catalog_load is None or not self.catalog_load.can_order:
            self.show_notice(self.catalog_load.notice() if self.catalog_load else None)
            return
        products = self._visible_products()
        if not products or self._cart_locked():
            return
        product = products[min(self.product_index, len(products) - 1)]
        self.push_screen(
            ConfigureModal(product, self.catalog, default_selection(product)),
            callback=self._on_item_configured,
        )

    def _on_item_configured(self, item: ConfiguredLineItem | None) -> None:
        if item is None:
            return
        try:
            self.cart.append(item)
        except PersistenceError as exc:
            self.show_notice(Notice(NoticeLevel.ERROR, f"Could not save cart: {exc}"))
            return
        self.cart_index = self.cart.count() - 1
        self.show_notice(Notice(NoticeLevel.SUCCESS, f"Added {item.product.name}"))
        self._refresh_cart()

    def _selected_line(self) -> tuple[int, ConfiguredLineItem] | None:
        if self.cart_index is None or not (0 <= self.cart_index < self.cart.count()):
            return None
        return self.cart_index, self.cart.item_at(self.cart_index)

    def action_edit_selected(self) -> None:
        selected = self._selected_line()
        if selected is None or self._cart_locked():
            return
        index, item = selected
        product = self.catalog.product(item.product.product_id) or item.product

        def on_edited(new_item: ConfiguredLineItem | None) -> None:
            if new_item is None:
                return
            # The line must still be where it was when the dialog opened.
            if index >= self.cart.count() or self.cart.item_at(index) is not item:
                self.show_notice(Notice(NoticeLevel.WARNING, "Cart changed while editing; edit discarded"))
                return
            try:
                self.cart.replace_at(index, new_item)
            except PersistenceError as exc:
                self.show_notice(Notice(NoticeLevel.ERROR, f"Could not save cart: {exc}"))
                return
            self.show_notice(Notice(NoticeLevel.SUCCESS, f"Updated {new_item.product.name}"))
            self._refresh_cart()

        self.push_screen(ConfigureModal(product, self.catalog, selection_for(item), editing=True), callback=on_edited)

    def action_delete_selected(self) -> None:
        selected = self._selected_line()
        if selected is None or self._cart_locked():
            return
        index, _ = selected
        try:
            self.cart.remove_at(index)
        except PersistenceError as exc:
            self.show_notice(Notice(NoticeLevel.ERROR, f"Could not save cart: {exc}"))
            return

        count = self.cart.count()
        self.cart_index = None if not count else min(index, count - 1)
        self._refresh_cart()

    # Checkout

    def action_checkout(self) -> None:
        if self.workflow.is_submitting:
            return
        if not self.workflow.begin():
            if self.workflow.blocked_reason:
                self.show_notice(Notice(NoticeLevel.ERROR, self.workflow.blocked_reason))
            else:
                self.show_notice(Notice(NoticeLevel.INFO, "Nothing to submit"))
            self._refresh_cart()
            return
        self.push_screen(
            CheckoutModal(self.catalog.payment_methods, self.cart.total()),
            callback=self._on_checkout_details,
        )

    def _on_checkout_details(self, details: CheckoutDetails | None) -> None:
        if details is None:
            self.workflow.cancel()
            return
        self.show_notice(Notice(NoticeLevel.INFO, "Submitting order"))
        self._submit(details)

    @work(thread=True, group="submit")
    def _submit(self, details: CheckoutDetails) -> None:
        self.workflow.submit(details.client_name, details.payment_method_id)
        self.call_from_thread(self._after_submit)

    def _after_submit(self) -> None:
        if self.cart.is_empty():
            self.cart_index = None
        self._refresh_all()

    # History

    def action_show_orders(self) -> None:
        store = self.workflow.store
        try:
            entries = [(record, store.ticket_status(record.order_id)) for record in store.recent_orders()]
        except PersistenceError as exc:
            self.show_notice(Notice(NoticeLevel.ERROR, f"Could not read order history: {exc}"))
            return
        self.push_screen(OrdersModal(entries, self.catalog))

    # Rendering

    def _refresh_all(self) -> None:
        self._refresh_products()
        self._refresh_cart()
        self._refresh_status()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_products(self) -> None:
        try:
            widget = self.query_one("#product-list", Static)
            title = self.query_one("#products-title", Static)
        except NoMatches:
            return
        category = "all" if self.category_id is None else f"category {self.category_id}"
        title.update(f"Products ({category})")

        products = self._visible_products()
        if not products:
            widget.update("(no products)" if self.catalog_load else "(loading catalog)")
            return
        if self.product_index >= len(products):
            self.product_index = 0

        start, end = self._window_bounds(len(products), self._visible_rows(widget), self.product_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            active = self.focus_pane == "products" and idx == self.product_index
            lines.append("➤ " if active else "  ")
            lines.append_text(format_product_row(products[idx]))
        if end < len(products):
            lines.append("\n⋮", style="dim")
        widget.update(lines)

    def _refresh_cart(self) -> None:
        try:
            widget = self.query_one("#cart-list", Static)
            total_widget = self.query_one("#cart-total", Static)
        except NoMatches:
            return

        items = self.cart.snapshot()
        total_widget.update(f"{self.cart.quantity()} item(s)  Total {format_money(self.cart.total())}")
        if not items:
            self.cart_index = None
            widget.update("(cart is empty)")
            return
        if self.cart_index is not None and self.cart_index >= len(items):
            self.cart_index = len(items) - 1

        start, end = self._window_bounds(len(items), self._visible_rows(widget), self.cart_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            active = self.focus_pane == "cart" and idx == self.cart_index
            lines.append("➤ " if active else "  ")
            lines.append(f"{idx + 1}. ")
            lines.append_text(format_line_label(items[idx]))
            tags = format_selection_tags(items[idx])
            if tags.plain:
                lines.append("\n      ")
                lines.append_text(tags)
        if end < len(items):
            lines.append("\n⋮", style="dim")
        widget.update(lines)

    def _refresh_status(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        text = Text()
        if self.online is None:
            text.append("connecting", style="dim")
        else:
            text.append("online" if self.online else "offline", style="bold green" if self.online else "bold red")
        if self.printer_status:
            text.append(f"  {self.printer_status}", style="dim")
        text.append("\n")
        if self.notice is not None:
            text.append(f" {self.notice.level.value.upper()} ", style=notice_style(self.notice.level))
            text.append(f" {self.notice.message}")
        else:
            text.append("Enter add. Tab cart. E edit. D delete. C category. O orders. Ctrl+S checkout.")
        bar.update(text)
