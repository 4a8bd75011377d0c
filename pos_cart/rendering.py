"""Rich text helpers for products, cart lines and notices."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text

from pos_cart.models import (
    CatalogSnapshot,
    ConfiguredLineItem,
    NoticeLevel,
    OrderLine,
    OrderRecord,
    Product,
    format_money,
)


def notice_style(level: NoticeLevel) -> str:
    """Return a consistent badge style for notice levels."""
    if level is NoticeLevel.SUCCESS:
        return "bold #0b1f0f on #5fbf72"
    if level is NoticeLevel.WARNING:
        return "bold #1f1a0b on #e0b84f"
    if level in {NoticeLevel.ERROR, NoticeLevel.BLOCKING}:
        return "bold #ffffff on #b23a48"
    return "bold #ffffff on #2f6db5"


def format_product_row(product: Product) -> Text:
    text = Text(product.name)
    if product.variants:
        lowest = min(variant.price for variant in product.variants)
        text.append(f"  from {format_money(lowest)}", style="dim")
    else:
        text.append(f"  {format_money(product.price)}", style="dim")
    return text


def format_line_label(item: ConfiguredLineItem) -> Text:
    """Render ``2x Burger [Large] [BBQ]  $16.00``."""
    text = Text()
    text.append(f"{item.quantity}x ", style="bold")
    text.append(item.product.name)
    if item.variant is not None:
        text.append(" ")
        text.append(item.variant.label, style="bold #ffffff on #2f6db5")
    if item.flavor is not None:
        text.append(" ")
        text.append(item.flavor.label, style="bold #0b1f0f on #5fbf72")
    text.append(f"  {format_money(item.total)}", style="bold")
    return text


def format_selection_tags(item: ConfiguredLineItem) -> Text:
    """Render extras, sauces and the comment as compact tags."""
    text = Text()
    tags = [f"[+{line.extra.name} x{line.quantity}]" for line in item.extras]
    tags.extend(f"[{sauce.name}]" for sauce in item.sauces)
    for idx, tag in enumerate(tags):
        if idx > 0:
            text.append(" ")
        text.append(tag, style="white")
    if item.comment:
        if tags:
            text.append(" ")
        text.append(f'"{item.comment}"', style="italic")
    return text


def format_timestamp(value: str) -> str:
    """Local ``YYYY-MM-DD HH:MM`` for an ISO timestamp; unparseable values pass through."""
    try:
        return datetime.fromisoformat(value).astimezone().strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def describe_order_line(line: OrderLine, catalog: CatalogSnapshot) -> str:
    """Name an order line from ids, using the catalog where it still knows them."""
    product = catalog.product(line.product_id)
    if product is None:
        label = f"product #{line.product_id}"
    else:
        parts = [product.name]
        variant = product.variant(line.variant_id)
        flavor = product.flavor(line.flavor_id)
        if variant is not None:
            parts.append(variant.label)
        if flavor is not None:
            parts.append(flavor.label)
        label = " / ".join(parts)

    text = f"{line.quantity}x {label}"
    for extra_id, qty in line.extras:
        extra = catalog.extra(extra_id)
        text += f"  +{extra.name if extra else f'extra #{extra_id}'} x{qty}"
    if line.comment:
        text += f'  "{line.comment}"'
    return text


def format_order_record(record: OrderRecord, catalog: CatalogSnapshot, ticket_status: str | None = None) -> Text:
    text = Text()
    text.append(f"#{record.order_id}", style="bold")
    text.append(f"  {record.document.client_name}  {format_money(record.total)}  ")
    text.append(format_timestamp(record.created_at), style="dim")
    if ticket_status == "PRINT_FAILED":
        text.append("  ")
        text.append(" not printed ", style=notice_style(NoticeLevel.WARNING))
    for line in record.document.items:
        text.append(f"\n    {describe_order_line(line, catalog)}")
    return text
