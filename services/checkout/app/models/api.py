from __future__ import annotations

from datetime import date
from typing import Any

from packages.shared.schemas.checkout_events_v1 import EffectNameV1, EffectStatusV1
from pydantic import BaseModel, Field

from services.checkout.app.models.cart import CartLineItem, GuestCartEntry
from services.checkout.app.models.checkout import (
    AppliedCoupon,
    CheckoutForm,
    DeliveryTier,
    PaymentMethod,
    PricedOrder,
)
from services.checkout.app.models.submission import EffectOutcome, SubmissionState


class SessionCreateRequest(BaseModel):
    # Absent for guest checkout.
    user_id: str | None = None
    # Keys the guest identity cache for returning guests.
    device_id: str | None = None
    guest_cart: list[GuestCartEntry] = Field(default_factory=list)


class CheckoutFormPatch(BaseModel):
    delivery: dict[str, Any] | None = None
    tier: DeliveryTier | None = None
    scheduled_date: date | None = None
    time_slot: str | None = None
    legal: dict[str, bool] | None = None
    guest: dict[str, str] | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = None


class SessionOut(BaseModel):
    session_id: str
    user_id: str | None
    authenticated: bool
    form: CheckoutForm
    coupon: AppliedCoupon | None
    state: SubmissionState
    can_submit: bool


class CouponRequest(BaseModel):
    code: str = Field(..., min_length=1)


class QuoteOut(BaseModel):
    line_items: list[CartLineItem]
    priced: PricedOrder
    coupon: AppliedCoupon | None
    display: dict[str, str]


class SubmitOut(BaseModel):
    order_id: str
    state: SubmissionState
    effects: list[EffectOutcome]
    redirect: str


class TimeSlotOut(BaseModel):
    value: str
    label: str
    time: str


class SlotsOut(BaseModel):
    dates: list[date]
    slots: list[TimeSlotOut]


class EffectsOut(BaseModel):
    order_id: str
    effects: list[EffectOutcome]
    failed: list[EffectNameV1]

    @classmethod
    def from_outcomes(cls, order_id: str, outcomes: list[EffectOutcome]) -> "EffectsOut":
        return cls(
            order_id=order_id,
            effects=outcomes,
            failed=[o.effect for o in outcomes if o.status == EffectStatusV1.FAILED],
        )
