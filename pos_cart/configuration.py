"""Product configuration: validate a Selection and build a priced line item."""

from __future__ import annotations

import structlog

from pos_cart.errors import InvalidSelection, SelectionProblem
from pos_cart.models import CatalogSnapshot, ConfiguredLineItem, ExtraLine, Product, Selection

logger = structlog.get_logger(__name__)

MAX_LINE_QUANTITY = 999
MAX_EXTRA_QUANTITY = 99


def default_selection(product: Product) -> Selection:
    """Fresh dialog state: first variant and first flavor preselected."""
    return Selection(
        variant_id=product.variants[0].variant_id if product.variants else None,
        flavor_id=product.flavors[0].flavor_id if product.flavors else None,
    )


def selection_for(item: ConfiguredLineItem) -> Selection:
    """Dialog state that reproduces an existing line, used when editing it."""
    return Selection(
        variant_id=item.variant.variant_id if item.variant else None,
        flavor_id=item.flavor.flavor_id if item.flavor else None,
        extras={line.extra.extra_id: line.quantity for line in item.extras},
        sauces={sauce.sauce_id for sauce in item.sauces},
        comment=item.comment,
        quantity=item.quantity,
    )


def configure(product: Product, selection: Selection, catalog: CatalogSnapshot) -> ConfiguredLineItem:
    """Validate ``selection`` against ``product`` and return an immutable line item.

    Every problem is collected before raising, so a dialog can flag all of
    them at once. Extras with quantity 0 are treated as unselected. Extras
    keep catalog order, sauces too, so the same choices always produce an
    equal item regardless of the order they were clicked in.

    Raises:
        InvalidSelection: with the full tuple of problems found.
    """
    problems: list[SelectionProblem] = []

    variant = None
    if product.variants:
        variant = product.variant(selection.variant_id)
        if variant is None:
            problems.append(SelectionProblem.MISSING_VARIANT)

    flavor = None
    if product.flavors:
        flavor = product.flavor(selection.flavor_id)
        if flavor is None:
            problems.append(SelectionProblem.MISSING_FLAVOR)

    if not 1 <= selection.quantity <= MAX_LINE_QUANTITY or any(
        not 0 <= qty <= MAX_EXTRA_QUANTITY for qty in selection.extras.values()
    ):
        problems.append(SelectionProblem.INVALID_QUANTITY)

    wanted_extras = {extra_id: qty for extra_id, qty in selection.extras.items() if qty > 0}
    if any(catalog.extra(extra_id) is None for extra_id in wanted_extras):
        problems.append(SelectionProblem.UNKNOWN_EXTRA)
    if any(catalog.sauce(sauce_id) is None for sauce_id in selection.sauces):
        problems.append(SelectionProblem.UNKNOWN_SAUCE)

    if problems:
        logger.info("configure_rejected", product_id=product.product_id, problems=[p.value for p in problems])
        raise InvalidSelection(tuple(problems))

    item = ConfiguredLineItem(
        product=product,
        variant=variant,
        flavor=flavor,
        extras=tuple(
            ExtraLine(extra=extra, quantity=wanted_extras[extra.extra_id])
            for extra in catalog.extras
            if extra.extra_id in wanted_extras
        ),
        sauces=tuple(sauce for sauce in catalog.sauces if sauce.sauce_id in selection.sauces),
        comment=selection.comment.strip(),
        quantity=selection.quantity,
    )
    try:
        total = item.total
    except ValueError:
        logger.info("configure_rejected", product_id=product.product_id, problems=["total_out_of_range"])
        raise InvalidSelection((SelectionProblem.INVALID_QUANTITY,)) from None
    logger.debug("configured", product_id=product.product_id, total=str(total))
    return item
