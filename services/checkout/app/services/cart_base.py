from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from services.checkout.app.models.cart import GuestCartEntry, MemberCartRow, Product


class CartSourceError(Exception):
    """Base class for cart source errors."""


class ProductCatalog(Protocol):
    def get_products(self, product_ids: Sequence[str]) -> list[Product]: ...


class MemberCartStore(Protocol):
    def fetch_rows(self, user_id: str) -> list[MemberCartRow]: ...

    def invalidate(self, user_id: str) -> None: ...


class GuestCartStore(Protocol):
    def load(self) -> list[GuestCartEntry]: ...

    def clear(self) -> None: ...
