from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from services.checkout.app.models.checkout import Coupon
from services.checkout.app.services.coupon_base import CouponNotFoundError

DEFAULT_COUPONS: tuple[Coupon, ...] = (
    Coupon(id="cpn-save10", code="SAVE10", discount_type="percentage", discount_value=10),
    Coupon(
        id="cpn-fiveoff",
        code="FIVEOFF",
        discount_type="fixed",
        discount_value=5,
        min_purchase=25,
    ),
)


@dataclass(frozen=True, slots=True)
class CouponRedemption:
    coupon_id: str
    user_id: str
    order_id: str
    discount_amount: float


class InMemoryCouponService:
    def __init__(self, coupons: Iterable[Coupon] | None = None) -> None:
        source = DEFAULT_COUPONS if coupons is None else coupons
        self._coupons = {coupon.id: coupon for coupon in source}
        self.redemptions: list[CouponRedemption] = []

    def add(self, coupon: Coupon) -> None:
        self._coupons[coupon.id] = coupon

    def get_coupon_by_code(self, code: str) -> Coupon | None:
        wanted = code.strip().lower()
        return next((c for c in self._coupons.values() if c.code.lower() == wanted), None)

    def count_redemptions(self, coupon_id: str, user_id: str) -> int:
        return sum(1 for r in self.redemptions if r.coupon_id == coupon_id and r.user_id == user_id)

    def apply_coupon(
        self,
        coupon_id: str,
        user_id: str,
        order_id: str,
        discount_amount: float,
    ) -> None:
        coupon = self._coupons.get(coupon_id)
        if coupon is None:
            raise CouponNotFoundError(coupon_id)

        self.redemptions.append(
            CouponRedemption(
                coupon_id=coupon_id,
                user_id=user_id,
                order_id=order_id,
                discount_amount=discount_amount,
            )
        )
        self._coupons[coupon_id] = coupon.model_copy(update={"used_count": coupon.used_count + 1})
