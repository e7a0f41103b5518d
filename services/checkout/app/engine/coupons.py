from __future__ import annotations

from datetime import datetime

from services.checkout.app.models.checkout import AppliedCoupon, Coupon
from services.checkout.app.services.coupon_base import CouponRejectedError

SUPPORTED_DISCOUNT_TYPES = {"percentage", "fixed"}


def evaluate_coupon(
    coupon: Coupon,
    subtotal: float,
    now: datetime,
    *,
    user_redemptions: int = 0,
) -> AppliedCoupon:
    """Check a coupon against the cart and return the discount it grants.

    Raises CouponRejectedError with a user-facing reason when the coupon cannot
    be used for this cart.
    """

    code = coupon.code

    if (coupon.status or "").lower() != "active":
        raise CouponRejectedError(code, "This coupon is no longer active")

    if coupon.start_date is not None and now < coupon.start_date:
        raise CouponRejectedError(code, "This coupon is not valid yet")

    if not coupon.never_expires and coupon.end_date is not None and now > coupon.end_date:
        raise CouponRejectedError(code, "This coupon has expired")

    if coupon.total_usage_limit is not None and coupon.used_count >= coupon.total_usage_limit:
        raise CouponRejectedError(code, "This coupon has reached its usage limit")

    if coupon.per_user_limit is not None and user_redemptions >= coupon.per_user_limit:
        raise CouponRejectedError(code, "You have already used this coupon")

    if coupon.min_purchase is not None and subtotal < coupon.min_purchase:
        raise CouponRejectedError(
            code, f"Minimum purchase of ${coupon.min_purchase:.2f} required for this coupon"
        )

    discount_type = coupon.discount_type.lower()
    if discount_type not in SUPPORTED_DISCOUNT_TYPES:
        raise CouponRejectedError(code, "This coupon cannot be applied at checkout")

    if discount_type == "percentage":
        discount = subtotal * coupon.discount_value / 100
    else:
        discount = min(coupon.discount_value, subtotal)

    if coupon.max_discount is not None:
        discount = min(discount, coupon.max_discount)

    return AppliedCoupon(code=code, discount=discount, coupon_id=coupon.id)
