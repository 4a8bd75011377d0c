"""Kitchen ticket printing on a USB ESC/POS thermal printer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

import structlog

from pos_cart.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from pos_cart.errors import PrinterError
from pos_cart.models import ConfiguredLineItem, OrderRecord

logger = structlog.get_logger(__name__)

# Extra vertical headroom to avoid descender clipping on thermal output.
_LINE_EXTRA_PX = 16
_NOTE_INDENT = "    "
_FONT_OVERRIDE_ENV = "POS_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


def to_print_label(item: ConfiguredLineItem) -> str:
    """``<qty>x <name>`` plus the variant and flavor when chosen."""
    parts = [item.product.name]
    if item.variant is not None:
        parts.append(item.variant.label)
    if item.flavor is not None:
        parts.append(item.flavor.label)
    return f"{item.quantity}x {' / '.join(parts)}"


def item_note_lines(item: ConfiguredLineItem) -> list[str]:
    lines = [f"{_NOTE_INDENT}+ {line.extra.name} x{line.quantity}" for line in item.extras]
    lines.extend(f"{_NOTE_INDENT}~ {sauce.name}" for sauce in item.sauces)
    if item.comment:
        lines.append(f'{_NOTE_INDENT}"{item.comment}"')
    return lines


def ticket_lines(record: OrderRecord, items: Iterable[ConfiguredLineItem]) -> list[str]:
    """Text lines of a kitchen ticket, header first."""
    lines = [f"#{record.order_id}  {record.document.client_name}"]
    for item in items:
        lines.append(to_print_label(item))
        lines.extend(item_note_lines(item))
    return lines


def _font_candidates() -> list[str]:
    override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    ordered = [override, PRINTER_FONT_PATH, *_LINUX_FONT_FALLBACKS]
    return list(dict.fromkeys(path for path in ordered if path))


def resolve_printer_font_path() -> str:
    """First existing font among POS_PRINTER_FONT_PATH, PRINTER_FONT_PATH and common Linux fonts."""
    candidates = _font_candidates()
    for candidate in candidates:
        if Path(candidate).is_file():
            return candidate
    raise PrinterError(
        f"No printer font found; set {_FONT_OVERRIDE_ENV} to a .ttf/.otf file (tried {', '.join(candidates)})"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Probe python-escpos, Pillow and the font without opening the USB device."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def render_ticket(lines: list[str], font: object) -> object:
    """Stack all ticket lines on one 1-bit canvas the width of the paper."""
    from PIL import Image, ImageDraw

    row_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, row_height * max(1, len(lines))), color=1)
    draw = ImageDraw.Draw(img)
    for row, text in enumerate(lines):
        top, bottom = draw.textbbox((0, 0), text, font=font)[1::2]
        # Centre on the glyph box, not the font ascent, so descenders fit.
        y = row * row_height + (row_height - (bottom - top)) // 2 - top
        draw.text((PRINTER_LEFT_INDENT_PX, y), text, font=font, fill=0)
    return img


def print_order_ticket(record: OrderRecord, items: Iterable[ConfiguredLineItem]) -> None:
    """Print one ticket for a confirmed order and cut it."""
    lines = ticket_lines(record, items)
    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except ImportError as exc:
        raise PrinterError(f"Printer dependencies unavailable: {exc}") from exc

    font_path = resolve_printer_font_path()
    try:
        font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
        printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
        printer.image(render_ticket(lines, font))
        printer.cut()
    except Exception as exc:
        raise PrinterError(f"Printing order {record.order_id} failed: {exc}") from exc
    logger.info("ticket_printed", order_id=record.order_id, lines=len(lines))
