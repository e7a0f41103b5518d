"""Normalizes authenticated and guest carts into priced line items.

Items whose product can no longer be resolved (deleted products, stale guest
cart references) are dropped rather than failing checkout.
"""

from __future__ import annotations

from collections.abc import Sequence

from services.checkout.app.models.cart import (
    DEFAULT_WEIGHT_KEY,
    CartLineItem,
    GuestCartEntry,
    MemberCartRow,
    Product,
)
from services.checkout.app.services.cart_base import ProductCatalog


def resolve_unit_price(product: Product, selected_weight: str | None) -> float:
    weight_key = selected_weight or DEFAULT_WEIGHT_KEY

    if product.prices:
        tiered = product.prices.get(weight_key)
        if tiered:
            return float(tiered)

    return float(product.price or 0)


def _line_item(product: Product, quantity: int, selected_weight: str | None) -> CartLineItem:
    return CartLineItem(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=resolve_unit_price(product, selected_weight),
        selected_weight=selected_weight or DEFAULT_WEIGHT_KEY,
    )


def aggregate_member_cart(rows: Sequence[MemberCartRow]) -> list[CartLineItem]:
    return [
        _line_item(row.product, row.quantity, row.selected_weight)
        for row in rows
        if row.product is not None
    ]


def aggregate_guest_cart(
    entries: Sequence[GuestCartEntry],
    catalog: ProductCatalog,
) -> list[CartLineItem]:
    if not entries:
        return []

    product_ids = list(dict.fromkeys(entry.product_id for entry in entries))
    products = {product.id: product for product in catalog.get_products(product_ids)}

    items: list[CartLineItem] = []
    for entry in entries:
        product = products.get(entry.product_id)
        if product is None:
            continue
        items.append(_line_item(product, entry.quantity, entry.selected_weight))
    return items
