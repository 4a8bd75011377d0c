"""Tests for product configuration and line pricing."""

from decimal import Decimal

import pytest

from pos_cart.configuration import configure, default_selection, selection_for
from pos_cart.errors import InvalidSelection, SelectionProblem
from pos_cart.models import CatalogSnapshot, Product, Selection


class TestDefaultSelection:
    def test_preselects_first_variant(self, catalog):
        selection = default_selection(catalog.product(1))
        assert selection.variant_id == 11
        assert selection.flavor_id is None

    def test_preselects_first_flavor(self, catalog):
        selection = default_selection(catalog.product(2))
        assert selection.variant_id is None
        assert selection.flavor_id == 21

    def test_starts_with_quantity_one_and_nothing_else(self, catalog):
        selection = default_selection(catalog.product(3))
        assert selection.quantity == 1
        assert selection.extras == {}
        assert selection.sauces == set()
        assert selection.comment == ""


class TestConfigureValidation:
    def test_missing_variant(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(1), Selection(), catalog)
        assert exc_info.value.problems == (SelectionProblem.MISSING_VARIANT,)

    def test_unknown_variant_counts_as_missing(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(1), Selection(variant_id=999), catalog)
        assert SelectionProblem.MISSING_VARIANT in exc_info.value.problems

    def test_missing_flavor(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(2), Selection(), catalog)
        assert exc_info.value.problems == (SelectionProblem.MISSING_FLAVOR,)

    def test_zero_quantity_is_invalid(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(3), Selection(quantity=0), catalog)
        assert exc_info.value.problems == (SelectionProblem.INVALID_QUANTITY,)

    def test_negative_extra_quantity_is_invalid(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(3), Selection(extras={100: -1}), catalog)
        assert exc_info.value.problems == (SelectionProblem.INVALID_QUANTITY,)

    def test_unknown_extra_and_sauce(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(3), Selection(extras={999: 1}, sauces={998}), catalog)
        assert exc_info.value.problems == (SelectionProblem.UNKNOWN_EXTRA, SelectionProblem.UNKNOWN_SAUCE)

    def test_collects_every_problem(self, catalog):
        product = catalog.product(1)
        with pytest.raises(InvalidSelection) as exc_info:
            configure(product, Selection(quantity=0), catalog)
        assert exc_info.value.problems == (SelectionProblem.MISSING_VARIANT, SelectionProblem.INVALID_QUANTITY)
        assert exc_info.value.messages() == ["Select a size", "Quantity out of range (1 to 999, extras up to 99)"]

    def test_oversized_quantities_are_invalid(self, catalog):
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(3), Selection(quantity=10**27), catalog)
        assert exc_info.value.problems == (SelectionProblem.INVALID_QUANTITY,)
        with pytest.raises(InvalidSelection) as exc_info:
            configure(catalog.product(3), Selection(extras={100: 100}), catalog)
        assert exc_info.value.problems == (SelectionProblem.INVALID_QUANTITY,)

    def test_unrepresentable_total_is_invalid(self):
        product = Product(product_id=9, name="Gold", price=Decimal("1E+25"))
        with pytest.raises(InvalidSelection) as exc_info:
            configure(product, Selection(quantity=999), CatalogSnapshot(products=(product,)))
        assert exc_info.value.problems == (SelectionProblem.INVALID_QUANTITY,)

    def test_variant_on_product_without_variants_is_ignored(self, catalog):
        item = configure(catalog.product(3), Selection(variant_id=11, flavor_id=21), catalog)
        assert item.variant is None
        assert item.flavor is None

    def test_does_not_mutate_selection(self, catalog):
        selection = Selection(variant_id=12, extras={100: 0, 101: 1}, comment="  no onion ")
        configure(catalog.product(1), selection, catalog)
        assert selection.extras == {100: 0, 101: 1}
        assert selection.comment == "  no onion "


class TestConfigurePricing:
    def test_variant_replaces_base_price_with_extras_and_quantity(self, catalog):
        selection = Selection(variant_id=12, extras={100: 2}, quantity=3)
        item = configure(catalog.product(1), selection, catalog)
        assert item.total == Decimal("30.00")

    def test_base_price_used_without_variants(self, catalog):
        item = configure(catalog.product(2), Selection(flavor_id=22, quantity=2), catalog)
        assert item.unit_price == Decimal("7.50")
        assert item.total == Decimal("15.00")

    def test_decimal_amounts_are_exact(self, catalog):
        item = configure(catalog.product(3), Selection(extras={101: 2}, quantity=3), catalog)
        assert item.total == Decimal("3.90")

    def test_zero_quantity_extras_are_dropped(self, catalog):
        item = configure(catalog.product(3), Selection(extras={100: 0, 101: 1}), catalog)
        assert [line.extra.extra_id for line in item.extras] == [101]

    def test_extras_and_sauces_follow_catalog_order(self, catalog):
        selection = Selection(extras={101: 1, 100: 1}, sauces={201, 200})
        item = configure(catalog.product(3), selection, catalog)
        assert [line.extra.name for line in item.extras] == ["Cheese", "Bacon"]
        assert [sauce.name for sauce in item.sauces] == ["Ketchup", "Mayo"]

    def test_same_choices_produce_equal_items(self, catalog):
        first = configure(catalog.product(3), Selection(extras={101: 1, 100: 2}), catalog)
        second = configure(catalog.product(3), Selection(extras={100: 2, 101: 1}), catalog)
        assert first == second

    def test_comment_is_stripped(self, catalog):
        item = configure(catalog.product(3), Selection(comment="  no ice  "), catalog)
        assert item.comment == "no ice"


class TestSelectionFor:
    def test_reproduces_existing_line(self, catalog):
        selection = Selection(variant_id=12, extras={100: 2}, sauces={201}, comment="well done", quantity=2)
        item = configure(catalog.product(1), selection, catalog)
        assert configure(catalog.product(1), selection_for(item), catalog) == item

    def test_edit_reprices_line(self, catalog):
        item = configure(catalog.product(1), Selection(variant_id=11), catalog)
        selection = selection_for(item)
        selection.variant_id = 12
        edited = configure(catalog.product(1), selection, catalog)
        assert item.total == Decimal("5.00")
        assert edited.total == Decimal("8.00")
