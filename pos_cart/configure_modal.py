"""Product configuration modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from pos_cart.configuration import MAX_EXTRA_QUANTITY, MAX_LINE_QUANTITY, configure
from pos_cart.errors import SELECTION_PROBLEM_MESSAGES, InvalidSelection, SelectionProblem
from pos_cart.models import CatalogSnapshot, ConfiguredLineItem, Product, Selection, format_money


class ConfigureModal(ModalScreen[ConfiguredLineItem | None]):
    """Centered modal to pick variant, flavor, extras, sauces, comment and quantity.

    Dismisses with the configured line item, or None when closed. Closing
    never touches the cart; the caller decides whether to append or replace.
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "toggle_current", "Toggle"),
        ("l", "adjust(1)", "More"),
        ("plus", "adjust(1)", "More"),
        ("h", "adjust(-1)", "Less"),
        ("minus", "adjust(-1)", "Less"),
        ("ctrl+s", "confirm", "Add"),
    ]

    CSS = """
    ConfigureModal {
        align: center middle;
        background: $background 60%;
    }

    #configure-dialog {
        width: 72;
        height: auto;
        max-height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #configure-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #configure-body {
        color: white;
    }

    #configure-error {
        color: #ffb3b3;
        margin-top: 1;
    }

    #configure-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)
    _VARIANT = "variant"
    _FLAVOR = "flavor"
    _EXTRA = "extra"
    _SAUCE = "sauce"
    _COMMENT = "comment"
    _QUANTITY = "quantity"

    def __init__(self, product: Product, catalog: CatalogSnapshot, selection: Selection, editing: bool = False) -> None:
        super().__init__()
        self.product = product
        self.catalog = catalog
        self.selection = selection
        self.editing = editing
        self.typing_comment = False
        self.problems: tuple[SelectionProblem, ...] = ()

    def compose(self) -> ComposeResult:
        with Container(id="configure-dialog"):
            title = f"Edit {self.product.name}" if self.editing else self.product.name
            yield Static(title, id="configure-title")
            yield Static(id="configure-body")
            yield Static(id="configure-error")
            yield Static(id="configure-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if not self.typing_comment:
            return

        if event.key in {"escape", "enter"}:
            self.typing_comment = False
            self.selection.comment = self.selection.comment.strip()
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            self.selection.comment = self.selection.comment[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            self.selection.comment += event.character
            self._refresh_content()
        # Ignore all other keys while typing.
        event.stop()

    def _rows(self) -> list[tuple[str, int]]:
        rows: list[tuple[str, int]] = []
        rows.extend((self._VARIANT, v.variant_id) for v in self.product.variants)
        rows.extend((self._FLAVOR, f.flavor_id) for f in self.product.flavors)
        rows.extend((self._EXTRA, e.extra_id) for e in self.catalog.extras)
        rows.extend((self._SAUCE, s.sauce_id) for s in self.catalog.sauces)
        rows.append((self._COMMENT, 0))
        rows.append((self._QUANTITY, 0))
        return rows

    def action_close(self) -> None:
        if self.typing_comment:
            self.typing_comment = False
            self._refresh_content()
            return
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        rows = self._rows()
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_content()

    def action_toggle_current(self) -> None:
        kind, value = self._rows()[self.cursor_index]
        if kind == self._VARIANT:
            self.selection.variant_id = value
        elif kind == self._FLAVOR:
            self.selection.flavor_id = value
        elif kind == self._EXTRA:
            if self.selection.extras.get(value, 0) > 0:
                self.selection.extras.pop(value, None)
            else:
                self.selection.extras[value] = 1
        elif kind == self._SAUCE:
            if value in self.selection.sauces:
                self.selection.sauces.remove(value)
            else:
                self.selection.sauces.add(value)
        elif kind == self._COMMENT:
            self.typing_comment = True
        elif kind == self._QUANTITY:
            self.action_confirm()
            return
        self._refresh_content()

    def action_adjust(self, delta: int) -> None:
        kind, value = self._rows()[self.cursor_index]
        if kind == self._EXTRA:
            self.selection.extras[value] = min(MAX_EXTRA_QUANTITY, max(0, self.selection.extras.get(value, 0) + delta))
        elif kind == self._QUANTITY:
            self.selection.quantity = min(MAX_LINE_QUANTITY, max(1, self.selection.quantity + delta))
        else:
            return
        self._refresh_content()

    def action_confirm(self) -> None:
        try:
            item = configure(self.product, self.selection, self.catalog)
        except InvalidSelection as exc:
            self.problems = exc.problems
            self._refresh_content()
            return
        self.dismiss(item)

    def _preview_total(self) -> str:
        try:
            return format_money(configure(self.product, self.selection, self.catalog).total)
        except InvalidSelection:
            return "-"

    def _refresh_content(self) -> None:
        body = self.query_one("#configure-body", Static)
        error_widget = self.query_one("#configure-error", Static)
        help_text = self.query_one("#configure-help", Static)

        content = Text(style="white")
        for idx, (kind, value) in enumerate(self._rows()):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            content.append(pointer)
            content.append_text(self._row_text(kind, value))

        content.append(f"\n\nTotal: {self._preview_total()}", style="bold")
        body.update(content)

        error_widget.update("\n".join(SELECTION_PROBLEM_MESSAGES[p] for p in self.problems))

        if self.typing_comment:
            help_text.update("Type comment, Enter/Esc done")
        else:
            help_text.update("J/K move, Enter select, H/L or -/+ amount, Ctrl+S confirm, Esc cancel")

    def _row_text(self, kind: str, value: int) -> Text:
        sel = self.selection
        if kind == self._VARIANT:
            variant = self.product.variant(value)
            mark = "(•)" if sel.variant_id == value else "( )"
            return Text(f"{mark} Size: {variant.label}  {format_money(variant.price)}")
        if kind == self._FLAVOR:
            flavor = self.product.flavor(value)
            mark = "(•)" if sel.flavor_id == value else "( )"
            return Text(f"{mark} Flavor: {flavor.label}")
        if kind == self._EXTRA:
            extra = self.catalog.extra(value)
            qty = sel.extras.get(value, 0)
            style = "bold white" if qty > 0 else "white"
            return Text(f"[{qty}] Extra: {extra.name}  +{format_money(extra.price)}", style=style)
        if kind == self._SAUCE:
            sauce = self.catalog.sauce(value)
            checked = value in sel.sauces
            return Text(f"{'[x]' if checked else '[ ]'} Sauce: {sauce.name}", style="bold white" if checked else "white")
        if kind == self._COMMENT:
            cursor = "|" if self.typing_comment else ""
            return Text(f"Comment: {sel.comment}{cursor}")
        return Text(f"Quantity: {sel.quantity}  (Enter to confirm)", style="bold")
