from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_WEIGHT_KEY = "unit"


class Product(BaseModel):
    id: str
    name: str = ""
    price: float | None = None
    # Weight key (e.g. "unit", "3.5g", "1oz") -> price.
    prices: dict[str, float] | None = None


class MemberCartRow(BaseModel):
    """A cart row for an authenticated user, joined with its product record."""

    id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    selected_weight: str | None = None
    product: Product | None = None


class GuestCartEntry(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    selected_weight: str = DEFAULT_WEIGHT_KEY


class CartLineItem(BaseModel):
    product_id: str
    product_name: str
    quantity: int = Field(..., ge=1)
    unit_price: float
    selected_weight: str = DEFAULT_WEIGHT_KEY

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity
