"""Read-only order history modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from pos_cart.models import CatalogSnapshot, OrderRecord
from pos_cart.rendering import format_order_record


class OrdersModal(ModalScreen[None]):
    """Recent confirmed orders, newest first."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("o", "close", "Close"),
        ("j", "scroll(1)", "Down"),
        ("k", "scroll(-1)", "Up"),
        ("down", "scroll(1)", "Down"),
        ("up", "scroll(-1)", "Up"),
    ]

    CSS = """
    OrdersModal {
        align: center middle;
        background: $background 60%;
    }

    #orders-dialog {
        width: 80;
        height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #orders-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #orders-body {
        height: 1fr;
        color: white;
    }

    #orders-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, entries: list[tuple[OrderRecord, str | None]], catalog: CatalogSnapshot) -> None:
        super().__init__()
        self.entries = entries
        self.catalog = catalog

    def compose(self) -> ComposeResult:
        with Container(id="orders-dialog"):
            yield Static(f"Orders ({len(self.entries)} most recent)", id="orders-title")
            with VerticalScroll(id="orders-body"):
                yield Static(self._body(), id="orders-list")
            yield Static("J/K scroll. Esc/q/o close.", id="orders-help")

    def _body(self) -> Text:
        if not self.entries:
            return Text("No orders yet.", style="dim")
        body = Text()
        for idx, (record, ticket_status) in enumerate(self.entries):
            if idx > 0:
                body.append("\n\n")
            body.append_text(format_order_record(record, self.catalog, ticket_status))
        return body

    def action_close(self) -> None:
        self.dismiss(None)

    def action_scroll(self, delta: int) -> None:
        self.query_one("#orders-body", VerticalScroll).scroll_relative(y=delta * 3, animate=False)
