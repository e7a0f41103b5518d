from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import uuid4

from services.checkout.app.models.cart import GuestCartEntry, MemberCartRow, Product

DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product(id="prod-blue-dream", name="Blue Dream", price=35.0, prices={"3.5g": 35.0, "7g": 60.0}),
    Product(id="prod-gummies", name="Sour Gummies", price=20.0),
    Product(id="prod-pre-roll", name="Pre-Roll 5 Pack", price=40.0),
    Product(id="prod-vape", name="Vape Cartridge", price=45.0, prices={"0.5g": 30.0, "1g": 45.0}),
)


class InMemoryCatalog:
    def __init__(self, products: Iterable[Product] | None = None) -> None:
        source = DEFAULT_PRODUCTS if products is None else products
        self._products = {product.id: product for product in source}

    def add(self, product: Product) -> None:
        self._products[product.id] = product

    def remove(self, product_id: str) -> None:
        self._products.pop(product_id, None)

    def get_products(self, product_ids: Sequence[str]) -> list[Product]:
        return [self._products[pid] for pid in product_ids if pid in self._products]


class InMemoryMemberCarts:
    """Authenticated carts. Product data is joined at read time."""

    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._catalog = catalog
        self._rows: dict[str, list[MemberCartRow]] = {}

    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        selected_weight: str | None = None,
    ) -> None:
        self._rows.setdefault(user_id, []).append(
            MemberCartRow(
                id=uuid4().hex,
                product_id=product_id,
                quantity=quantity,
                selected_weight=selected_weight,
            )
        )

    def fetch_rows(self, user_id: str) -> list[MemberCartRow]:
        rows = self._rows.get(user_id, [])
        products = {p.id: p for p in self._catalog.get_products([r.product_id for r in rows])}
        return [row.model_copy(update={"product": products.get(row.product_id)}) for row in rows]

    def invalidate(self, user_id: str) -> None:
        self._rows.pop(user_id, None)


class InMemoryGuestCart:
    """A guest cart as submitted by the client's local storage."""

    def __init__(self, entries: Iterable[GuestCartEntry] = ()) -> None:
        self._entries = list(entries)
        self.cleared = False

    def load(self) -> list[GuestCartEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []
        self.cleared = True
