"""Checkout pricing.

Pure functions of their inputs: the same cart, delivery context, discount
eligibility and clock time always price to the same PricedOrder. Amounts are
plain floats and are only rounded for display.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from services.checkout.app.models.cart import CartLineItem
from services.checkout.app.models.checkout import (
    ActiveDiscount,
    AppliedCoupon,
    Borough,
    DeliveryTier,
    DiscountEligibility,
    FirstOrderDiscountApplied,
    NoDiscount,
    PricedOrder,
    WelcomeDiscountApplied,
)

FREE_DELIVERY_THRESHOLD = 100.0
FIRST_ORDER_DISCOUNT_RATE = 0.10

# Shown next to the express option only; the committed fee ignores the tier.
EXPRESS_SURCHARGE_RATE = 0.30

# borough -> (member fee, guest fee)
BOROUGH_FEES: dict[Borough, tuple[float, float]] = {
    Borough.BROOKLYN: (5.00, 5.50),
    Borough.QUEENS: (5.00, 5.50),
    # Includes the city surcharge below.
    Borough.MANHATTAN: (10.00, 11.00),
}
MANHATTAN_SURCHARGE: tuple[float, float] = (5.00, 5.50)


@dataclass(frozen=True, slots=True)
class PricingInputs:
    items: Sequence[CartLineItem]
    borough: Borough | None
    member: bool
    # Clock time used to check the welcome discount is still active.
    now: datetime
    tier: DeliveryTier = DeliveryTier.STANDARD
    eligibility: DiscountEligibility = field(default_factory=DiscountEligibility)
    coupon: AppliedCoupon | None = None


def subtotal_of(items: Sequence[CartLineItem]) -> float:
    return sum((item.unit_price * item.quantity for item in items), 0.0)


def delivery_fee(subtotal: float, borough: Borough | None, *, member: bool) -> float:
    if borough is None:
        return 0.0

    if subtotal >= FREE_DELIVERY_THRESHOLD:
        return 0.0

    member_fee, guest_fee = BOROUGH_FEES[borough]
    return member_fee if member else guest_fee


def manhattan_surcharge(subtotal: float, borough: Borough | None, *, member: bool) -> float:
    if borough != Borough.MANHATTAN or delivery_fee(subtotal, borough, member=member) == 0:
        return 0.0
    member_surcharge, guest_surcharge = MANHATTAN_SURCHARGE
    return member_surcharge if member else guest_surcharge


def select_membership_discount(
    subtotal: float,
    eligibility: DiscountEligibility,
    now: datetime,
    *,
    member: bool,
) -> ActiveDiscount:
    """Pick the single membership discount for this order.

    An unused, unexpired welcome discount always wins; the first-order discount
    is only considered when no welcome discount is active.
    """

    if not member:
        return NoDiscount()

    welcome = eligibility.welcome_discount
    if welcome is not None and welcome.is_active(now):
        return WelcomeDiscountApplied(
            amount=subtotal * welcome.discount_percentage / 100,
            discount_id=welcome.id,
            percentage=welcome.discount_percentage,
        )

    if eligibility.first_order:
        return FirstOrderDiscountApplied(amount=subtotal * FIRST_ORDER_DISCOUNT_RATE)

    return NoDiscount()


def price_order(inputs: PricingInputs) -> PricedOrder:
    subtotal = subtotal_of(inputs.items)
    fee = delivery_fee(subtotal, inputs.borough, member=inputs.member)
    guest_fee = delivery_fee(subtotal, inputs.borough, member=False)
    member_fee = delivery_fee(subtotal, inputs.borough, member=True)

    membership = select_membership_discount(
        subtotal, inputs.eligibility, inputs.now, member=inputs.member
    )
    coupon_discount = inputs.coupon.discount if inputs.coupon is not None else 0.0

    total = subtotal + fee - membership.amount - coupon_discount
    guest_total = subtotal + guest_fee - coupon_discount

    if inputs.member:
        member_savings = membership.amount + (guest_fee - fee)
        potential_member_savings = 0.0
    else:
        member_savings = 0.0
        potential_member_savings = subtotal * FIRST_ORDER_DISCOUNT_RATE + (guest_fee - member_fee)

    express_preview = fee * EXPRESS_SURCHARGE_RATE if inputs.tier == DeliveryTier.EXPRESS else 0.0

    return PricedOrder(
        subtotal=subtotal,
        delivery_fee=fee,
        membership_discount=membership,
        coupon_discount=coupon_discount,
        total=total,
        guest_delivery_fee=guest_fee,
        guest_total=guest_total,
        free_delivery=subtotal >= FREE_DELIVERY_THRESHOLD,
        amount_to_free_delivery=max(0.0, FREE_DELIVERY_THRESHOLD - subtotal),
        manhattan_surcharge=manhattan_surcharge(subtotal, inputs.borough, member=inputs.member),
        member_savings=member_savings,
        potential_member_savings=potential_member_savings,
        express_surcharge_preview=express_preview,
    )


def format_money(amount: float) -> str:
    return f"${amount:,.2f}" if amount >= 0 else f"-${-amount:,.2f}"
