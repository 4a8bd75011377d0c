"""Domain models for pos-cart."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: object) -> Decimal:
    """Convert a JSON number/string to a two-place Decimal without float artifacts.

    Raises ValueError for anything that is not a finite amount representable
    at cent precision (NaN, Infinity, or too many digits).
    """
    if value is None or value == "":
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if not amount.is_finite():
            raise ValueError(f"not a finite amount: {value!r}")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"not a monetary amount: {value!r}") from exc


def format_money(amount: Decimal) -> str:
    return f"${amount.quantize(CENT, rounding=ROUND_HALF_UP)}"


@dataclass(frozen=True)
class Variant:
    """A size/tier choice that replaces the product's base price."""

    variant_id: int
    label: str
    price: Decimal


@dataclass(frozen=True)
class Flavor:
    flavor_id: int
    label: str


@dataclass(frozen=True)
class Product:
    """A catalog product with its own variants and flavors."""

    product_id: int
    name: str
    price: Decimal
    image: str | None = None
    category_id: int | None = None
    variants: tuple[Variant, ...] = ()
    flavors: tuple[Flavor, ...] = ()

    def variant(self, variant_id: int | None) -> Variant | None:
        return next((v for v in self.variants if v.variant_id == variant_id), None)

    def flavor(self, flavor_id: int | None) -> Flavor | None:
        return next((f for f in self.flavors if f.flavor_id == flavor_id), None)


@dataclass(frozen=True)
class Extra:
    """A catalog-wide add-on priced per unit."""

    extra_id: int
    name: str
    price: Decimal


@dataclass(frozen=True)
class Sauce:
    sauce_id: int
    name: str
    image: str | None = None


@dataclass(frozen=True)
class PaymentMethod:
    payment_method_id: int
    name: str


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything available for ordering, loaded together."""

    products: tuple[Product, ...] = ()
    extras: tuple[Extra, ...] = ()
    sauces: tuple[Sauce, ...] = ()
    payment_methods: tuple[PaymentMethod, ...] = ()

    def is_empty(self) -> bool:
        return not self.products

    def product(self, product_id: int) -> Product | None:
        return next((p for p in self.products if p.product_id == product_id), None)

    def extra(self, extra_id: int) -> Extra | None:
        return next((e for e in self.extras if e.extra_id == extra_id), None)

    def sauce(self, sauce_id: int) -> Sauce | None:
        return next((s for s in self.sauces if s.sauce_id == sauce_id), None)


class CatalogStatus(Enum):
    FRESH = "fresh"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


class NoticeLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    BLOCKING = "blocking"


@dataclass(frozen=True)
class Notice:
    """Something the presentation layer should show the operator."""

    level: NoticeLevel
    message: str


@dataclass
class Selection:
    """In-progress choices of a configuration dialog."""

    variant_id: int | None = None
    flavor_id: int | None = None
    extras: dict[int, int] = field(default_factory=dict)
    sauces: set[int] = field(default_factory=set)
    comment: str = ""
    quantity: int = 1


@dataclass(frozen=True)
class ExtraLine:
    extra: Extra
    quantity: int

    @property
    def total(self) -> Decimal:
        return self.extra.price * self.quantity


@dataclass(frozen=True)
class ConfiguredLineItem:
    """A fully specified, priced cart line. Prices are always recomputed."""

    product: Product
    variant: Variant | None = None
    flavor: Flavor | None = None
    extras: tuple[ExtraLine, ...] = ()
    sauces: tuple[Sauce, ...] = ()
    comment: str = ""
    quantity: int = 1

    @property
    def unit_price(self) -> Decimal:
        if self.variant is not None:
            return self.variant.price
        return self.product.price

    @property
    def extras_total(self) -> Decimal:
        return sum((line.total for line in self.extras), ZERO)

    @property
    def total(self) -> Decimal:
        return to_money((self.unit_price + self.extras_total) * self.quantity)


@dataclass(frozen=True)
class OrderLine:
    """Wire representation of one cart line."""

    product_id: int
    quantity: int
    variant_id: int | None = None
    flavor_id: int | None = None
    extras: tuple[tuple[int, int], ...] = ()
    sauces: tuple[int, ...] = ()
    comment: str = ""


@dataclass(frozen=True)
class OrderDocument:
    client_name: str
    payment_method_id: int
    comment: str
    items: tuple[OrderLine, ...]


@dataclass(frozen=True)
class OrderRecord:
    """A backend-confirmed order kept in local history."""

    order_id: int | str
    document: OrderDocument
    created_at: str
    total: Decimal
