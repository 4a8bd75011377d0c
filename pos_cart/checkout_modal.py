"""Customer name and payment method entry modal screen."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from pos_cart.models import PaymentMethod, format_money

_MAX_NAME_LENGTH = 60


@dataclass(frozen=True)
class CheckoutDetails:
    client_name: str
    payment_method_id: int | None


class CheckoutModal(ModalScreen[CheckoutDetails | None]):
    """Prompt for the customer name before an order is submitted."""

    CSS = """
    CheckoutModal {
        align: center middle;
        background: $background 60%;
    }

    #checkout-dialog {
        width: 60;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #checkout-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #checkout-prompt {
        color: white;
        margin-bottom: 1;
    }

    #checkout-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #checkout-payment {
        color: white;
        margin-bottom: 1;
    }

    #checkout-help {
        color: #dddddd;
    }
    """

    def __init__(self, payment_methods: tuple[PaymentMethod, ...], total: Decimal) -> None:
        super().__init__()
        self.payment_methods = payment_methods
        self.total = total
        self.payment_index = 0
        self.value = ""

    def compose(self) -> ComposeResult:
        with Container(id="checkout-dialog"):
            yield Static("Checkout", id="checkout-title")
            yield Static(f"Customer name  (order total {format_money(self.total)})", id="checkout-prompt")
            yield Static(id="checkout-value")
            yield Static(id="checkout-payment")
            yield Static("Enter confirm. Tab payment method. Esc cancel.", id="checkout-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "tab":
            if self.payment_methods:
                self.payment_index = (self.payment_index + 1) % len(self.payment_methods)
                self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.value) < _MAX_NAME_LENGTH:
                self.value += event.character
            self._refresh_content()
            event.stop()

    def _selected_payment_method(self) -> PaymentMethod | None:
        if not self.payment_methods:
            return None
        return self.payment_methods[self.payment_index]

    def _confirm(self) -> None:
        # A blank name is a cancel, not an error.
        if not self.value.strip():
            self.dismiss(None)
            return
        method = self._selected_payment_method()
        self.dismiss(
            CheckoutDetails(
                client_name=self.value.strip(),
                payment_method_id=method.payment_method_id if method else None,
            )
        )

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#checkout-value", Static)
        payment_widget = self.query_one("#checkout-payment", Static)
        value_widget.update(self.value or "")
        method = self._selected_payment_method()
        payment_widget.update(f"Payment: {method.name}" if method else "Payment: (none available)")
