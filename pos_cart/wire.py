"""JSON mapping between the backend/durable store and the canonical models.

The backend grew several names for the same field over time (``options`` vs
``variants``, ``size`` vs ``name``, ``id_order`` vs ``idOrder``). All of that
aliasing is resolved here so the rest of the package only sees one shape.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pos_cart.errors import CatalogFormatError
from pos_cart.models import (
    CatalogSnapshot,
    ConfiguredLineItem,
    Extra,
    ExtraLine,
    Flavor,
    OrderDocument,
    OrderLine,
    OrderRecord,
    PaymentMethod,
    Product,
    Sauce,
    Variant,
    to_money,
)

_ORDER_ID_KEYS = ("id_order", "idOrder", "order_id", "orderId")


def _pick(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _as_id(value: Any, key: str) -> int:
    # 3.0 is an id, 1.9 is not.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise CatalogFormatError(f"invalid {key}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise CatalogFormatError(f"invalid {key}: {value!r}") from exc


def _require_id(raw: dict[str, Any], *keys: str) -> int:
    value = _pick(raw, *keys)
    if value is None or isinstance(value, bool):
        raise CatalogFormatError(f"missing {keys[0]} in {raw!r}")
    return _as_id(value, keys[0])


def _optional_id(raw: dict[str, Any], *keys: str) -> int | None:
    value = _pick(raw, *keys)
    if value is None:
        return None
    return _as_id(value, keys[0])


def _money(raw: dict[str, Any], *keys: str) -> Decimal:
    try:
        return to_money(_pick(raw, *keys))
    except ValueError as exc:
        raise CatalogFormatError(str(exc)) from exc


def _text(raw: dict[str, Any], *keys: str) -> str:
    value = _pick(raw, *keys)
    if value is None:
        raise CatalogFormatError(f"missing {keys[0]} in {raw!r}")
    return str(value)


def _entries(body: dict[str, Any], *keys: str) -> list[dict[str, Any]]:
    value = _pick(body, *keys, default=[])
    if not isinstance(value, list):
        raise CatalogFormatError(f"{keys[0]} must be a list")
    for entry in value:
        if not isinstance(entry, dict):
            raise CatalogFormatError(f"{keys[0]} entries must be objects")
    return value


def parse_variant(raw: dict[str, Any]) -> Variant:
    return Variant(
        variant_id=_require_id(raw, "id_variant", "variant_id", "id"),
        label=_text(raw, "size", "name", "label"),
        price=_money(raw, "price"),
    )


def parse_flavor(raw: dict[str, Any]) -> Flavor:
    return Flavor(
        flavor_id=_require_id(raw, "id_flavor", "flavor_id", "id"),
        label=_text(raw, "name", "label", "flavor"),
    )


def parse_product(raw: dict[str, Any]) -> Product:
    if not isinstance(raw, dict):
        raise CatalogFormatError("product entries must be objects")
    return Product(
        product_id=_require_id(raw, "id_product", "product_id", "id"),
        name=_text(raw, "name", "product_name"),
        price=_money(raw, "price"),
        image=_pick(raw, "image", "product_image"),
        category_id=_optional_id(raw, "id_category", "category_id"),
        variants=tuple(parse_variant(v) for v in _entries(raw, "options", "variants")),
        flavors=tuple(parse_flavor(f) for f in _entries(raw, "flavors")),
    )


def parse_extra(raw: dict[str, Any]) -> Extra:
    return Extra(
        extra_id=_require_id(raw, "id_extra", "extra_id", "id"),
        name=_text(raw, "name"),
        price=_money(raw, "price", "actual_price"),
    )


def parse_sauce(raw: dict[str, Any]) -> Sauce:
    return Sauce(
        sauce_id=_require_id(raw, "id_sauce", "sauce_id", "id"),
        name=_text(raw, "name"),
        image=_pick(raw, "image"),
    )


def parse_payment_method(raw: dict[str, Any]) -> PaymentMethod:
    return PaymentMethod(
        payment_method_id=_require_id(raw, "id_payment_method", "payment_method_id", "id"),
        name=_text(raw, "name"),
    )


def parse_catalog(body: Any) -> CatalogSnapshot:
    """Parse a ``GET /api/products`` body. Missing side lists are empty."""
    if not isinstance(body, dict):
        raise CatalogFormatError("catalog body must be an object")
    if not isinstance(body.get("products"), list):
        raise CatalogFormatError("catalog body has no products list")

    return CatalogSnapshot(
        products=tuple(parse_product(p) for p in _entries(body, "products")),
        extras=tuple(parse_extra(e) for e in _entries(body, "extras")),
        sauces=tuple(parse_sauce(s) for s in _entries(body, "sauces")),
        payment_methods=tuple(
            parse_payment_method(m) for m in _entries(body, "paymentMethods", "payment_methods")
        ),
    )


def product_to_dict(product: Product) -> dict[str, Any]:
    return {
        "id_product": product.product_id,
        "name": product.name,
        "price": str(product.price),
        "image": product.image,
        "id_category": product.category_id,
        "options": [
            {"id_variant": v.variant_id, "size": v.label, "price": str(v.price)} for v in product.variants
        ],
        "flavors": [{"id_flavor": f.flavor_id, "name": f.label} for f in product.flavors],
    }


def extra_to_dict(extra: Extra) -> dict[str, Any]:
    return {"id_extra": extra.extra_id, "name": extra.name, "price": str(extra.price)}


def sauce_to_dict(sauce: Sauce) -> dict[str, Any]:
    return {"id_sauce": sauce.sauce_id, "name": sauce.name, "image": sauce.image}


def catalog_to_dict(snapshot: CatalogSnapshot) -> dict[str, Any]:
    """Serialize a snapshot in the backend's own shape so parse_catalog reads it back."""
    return {
        "products": [product_to_dict(p) for p in snapshot.products],
        "extras": [extra_to_dict(e) for e in snapshot.extras],
        "sauces": [sauce_to_dict(s) for s in snapshot.sauces],
        "paymentMethods": [
            {"id_payment_method": m.payment_method_id, "name": m.name} for m in snapshot.payment_methods
        ],
    }


def item_to_dict(item: ConfiguredLineItem) -> dict[str, Any]:
    return {
        "product": product_to_dict(item.product),
        "variant_id": item.variant.variant_id if item.variant else None,
        "flavor_id": item.flavor.flavor_id if item.flavor else None,
        "extras": [{"extra": extra_to_dict(line.extra), "quantity": line.quantity} for line in item.extras],
        "sauces": [sauce_to_dict(s) for s in item.sauces],
        "comment": item.comment,
        "quantity": item.quantity,
    }


def item_from_dict(raw: dict[str, Any]) -> ConfiguredLineItem:
    product = parse_product(raw["product"])
    return ConfiguredLineItem(
        product=product,
        variant=product.variant(raw.get("variant_id")),
        flavor=product.flavor(raw.get("flavor_id")),
        extras=tuple(
            ExtraLine(extra=parse_extra(line["extra"]), quantity=int(line["quantity"])) for line in raw.get("extras", [])
        ),
        sauces=tuple(parse_sauce(s) for s in raw.get("sauces", [])),
        comment=str(raw.get("comment") or ""),
        quantity=int(raw.get("quantity", 1)),
    )


def line_to_payload(line: OrderLine) -> dict[str, Any]:
    payload: dict[str, Any] = {"id_product": line.product_id, "quantity": line.quantity}
    if line.variant_id is not None:
        payload["id_variant"] = line.variant_id
    if line.flavor_id is not None:
        payload["id_flavor"] = line.flavor_id
    payload["extras"] = [{"id_extra": extra_id, "quantity": qty} for extra_id, qty in line.extras]
    payload["sauces"] = [{"id_sauce": sauce_id} for sauce_id in line.sauces]
    if line.comment:
        payload["comment"] = line.comment
    return payload


def document_to_payload(document: OrderDocument) -> dict[str, Any]:
    """Body of ``POST /api/orders``."""
    return {
        "id_payment_method": document.payment_method_id,
        "client_name": document.client_name,
        "comment": document.comment,
        "items": [line_to_payload(line) for line in document.items],
    }


def document_from_payload(raw: dict[str, Any]) -> OrderDocument:
    return OrderDocument(
        client_name=str(raw.get("client_name", "")),
        payment_method_id=int(raw["id_payment_method"]),
        comment=str(raw.get("comment") or ""),
        items=tuple(
            OrderLine(
                product_id=int(item["id_product"]),
                quantity=int(item.get("quantity", 1)),
                variant_id=item.get("id_variant"),
                flavor_id=item.get("id_flavor"),
                extras=tuple((int(e["id_extra"]), int(e.get("quantity", 1))) for e in item.get("extras", [])),
                sauces=tuple(int(s["id_sauce"]) for s in item.get("sauces", [])),
                comment=str(item.get("comment") or ""),
            )
            for item in raw.get("items", [])
        ),
    )


def record_to_dict(record: OrderRecord) -> dict[str, Any]:
    return {
        "order_id": record.order_id,
        "created_at": record.created_at,
        "total": str(record.total),
        "document": document_to_payload(record.document),
    }


def record_from_dict(raw: dict[str, Any]) -> OrderRecord:
    return OrderRecord(
        order_id=raw["order_id"],
        document=document_from_payload(raw["document"]),
        created_at=str(raw["created_at"]),
        total=to_money(raw["total"]),
    )


def parse_order_id(body: Any) -> int | str | None:
    """Return the server-assigned order id, or None when the body has none."""
    if not isinstance(body, dict):
        return None
    for key in _ORDER_ID_KEYS:
        value = body.get(key)
        if value is None or isinstance(value, bool) or value == "":
            continue
        if isinstance(value, (int, str)):
            return value
    return None


def extract_error_detail(body: Any) -> str | None:
    """Extract a human-readable error from a backend error body.

    Handles ``{"error": "msg"}``, ``{"error": {"field": "msg"}}``,
    ``{"message": "msg"}`` and validation lists under ``detail``.
    """
    if not isinstance(body, dict):
        return None

    detail = body.get("detail")
    if isinstance(detail, list):
        parts = []
        for err in detail:
            if not isinstance(err, dict):
                parts.append(str(err))
                continue
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts) or None
    if isinstance(detail, str) and detail:
        return detail

    if "error" in body and body["error"]:
        error = body["error"]
        if isinstance(error, dict):
            return " | ".join(f"{k}: {v}" for k, v in error.items())
        return str(error)

    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    return None
