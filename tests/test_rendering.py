"""Tests for the order history text shown in the orders dialog."""

from decimal import Decimal

from pos_cart.models import CatalogSnapshot, OrderDocument, OrderLine, OrderRecord
from pos_cart.rendering import describe_order_line, format_order_record, format_timestamp


def _record(lines, order_id=42):
    return OrderRecord(
        order_id=order_id,
        document=OrderDocument(client_name="Ana", payment_method_id=1, comment="", items=tuple(lines)),
        created_at="2024-01-01T09:30:00",
        total=Decimal("37.50"),
    )


class TestDescribeOrderLine:
    def test_names_come_from_catalog(self, catalog):
        line = OrderLine(product_id=1, quantity=3, variant_id=12, extras=((100, 2),), comment="well done")
        assert describe_order_line(line, catalog) == '3x Burger / Large  +Cheese x2  "well done"'

    def test_flavor_is_named(self, catalog):
        line = OrderLine(product_id=2, quantity=1, flavor_id=22)
        assert describe_order_line(line, catalog) == "1x Wings / Buffalo"

    def test_unknown_ids_fall_back_to_numbers(self):
        line = OrderLine(product_id=7, quantity=2, extras=((5, 1),))
        assert describe_order_line(line, CatalogSnapshot()) == "2x product #7  +extra #5 x1"


class TestFormatOrderRecord:
    def test_header_and_lines(self, catalog):
        record = _record([OrderLine(product_id=3, quantity=2), OrderLine(product_id=2, quantity=1, flavor_id=21)])
        assert format_order_record(record, catalog).plain == (
            "#42  Ana  $37.50  2024-01-01 09:30\n    2x Soda\n    1x Wings / BBQ"
        )

    def test_failed_ticket_is_flagged(self, catalog):
        record = _record([OrderLine(product_id=3, quantity=1)])
        assert "not printed" in format_order_record(record, catalog, "PRINT_FAILED").plain
        assert "not printed" not in format_order_record(record, catalog, "PRINTED").plain

    def test_unparseable_timestamp_passes_through(self):
        assert format_timestamp("yesterday") == "yesterday"
