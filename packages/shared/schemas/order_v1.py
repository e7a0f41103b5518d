"""Shared order payload schema (v1).

This is the request body sent to the order-creation service. The service owns
persistence of the order and its items; it must stay backwards compatible with
clients that already submit this shape.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class OrderPayloadItemV1(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: float
    product_name: str = ""
    selected_weight: str = "unit"


class OrderPayloadV1(BaseModel):
    version: str = "1"

    # Absent for guest checkout.
    user_id: str | None = None

    delivery_address: str
    delivery_borough: str
    dropoff_lat: float | None = None
    dropoff_lng: float | None = None

    payment_method: str
    subtotal: float
    delivery_fee: float
    total_amount: float

    scheduled_delivery_time: datetime | None = None
    delivery_notes: str | None = None

    # Guest identity, only set when user_id is absent.
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None

    cart_items: list[OrderPayloadItemV1] = Field(..., min_length=1)


class OrderCreationResponseV1(BaseModel):
    order_id: str | None = None
    error: str | None = None
