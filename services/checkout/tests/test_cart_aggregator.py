from __future__ import annotations

from collections.abc import Sequence

from services.checkout.app.engine.cart_aggregator import (
    aggregate_guest_cart,
    aggregate_member_cart,
    resolve_unit_price,
)
from services.checkout.app.models.cart import GuestCartEntry, MemberCartRow, Product
from services.checkout.app.services.cart_mock import InMemoryCatalog, InMemoryMemberCarts


class _CountingCatalog:
    def __init__(self) -> None:
        self._inner = InMemoryCatalog()
        self.calls: list[list[str]] = []

    def get_products(self, product_ids: Sequence[str]) -> list[Product]:
        self.calls.append(list(product_ids))
        return self._inner.get_products(product_ids)


def test_weight_price_wins_over_flat_price() -> None:
    product = Product(id="p", name="Flower", price=35.0, prices={"3.5g": 35.0, "7g": 60.0})

    assert resolve_unit_price(product, "7g") == 60.0
    assert resolve_unit_price(product, "1oz") == 35.0
    assert resolve_unit_price(product, None) == 35.0


def test_zero_weight_price_falls_back_to_flat_price() -> None:
    product = Product(id="p", name="Flower", price=12.0, prices={"unit": 0})
    assert resolve_unit_price(product, "unit") == 12.0


def test_missing_prices_resolve_to_zero() -> None:
    assert resolve_unit_price(Product(id="p", name="Freebie"), "unit") == 0.0


def test_member_cart_drops_rows_without_product() -> None:
    rows = [
        MemberCartRow(
            id="r1",
            product_id="prod-gummies",
            quantity=2,
            product=Product(id="prod-gummies", name="Sour Gummies", price=20.0),
        ),
        MemberCartRow(id="r2", product_id="prod-gone", quantity=1, product=None),
    ]

    items = aggregate_member_cart(rows)

    assert [i.product_id for i in items] == ["prod-gummies"]
    assert items[0].line_total == 40.0
    assert items[0].selected_weight == "unit"


def test_member_cart_joins_catalog_at_read_time() -> None:
    catalog = InMemoryCatalog()
    carts = InMemoryMemberCarts(catalog)
    carts.add_item("u-1", "prod-blue-dream", 1, "7g")
    carts.add_item("u-1", "prod-vape", 2, "0.5g")

    catalog.remove("prod-vape")
    items = aggregate_member_cart(carts.fetch_rows("u-1"))

    assert len(items) == 1
    assert items[0].product_name == "Blue Dream"
    assert items[0].unit_price == 60.0


def test_guest_cart_uses_one_batch_lookup() -> None:
    catalog = _CountingCatalog()
    entries = [
        GuestCartEntry(product_id="prod-gummies", quantity=1),
        GuestCartEntry(product_id="prod-vape", quantity=1, selected_weight="1g"),
        GuestCartEntry(product_id="prod-gummies", quantity=3),
        GuestCartEntry(product_id="prod-missing", quantity=1),
    ]

    items = aggregate_guest_cart(entries, catalog)

    assert catalog.calls == [["prod-gummies", "prod-vape", "prod-missing"]]
    assert [(i.product_id, i.quantity, i.unit_price) for i in items] == [
        ("prod-gummies", 1, 20.0),
        ("prod-vape", 1, 45.0),
        ("prod-gummies", 3, 20.0),
    ]


def test_empty_guest_cart_skips_lookup() -> None:
    catalog = _CountingCatalog()

    assert aggregate_guest_cart([], catalog) == []
    assert catalog.calls == []
