from __future__ import annotations

from typing import Protocol

from services.checkout.app.models.checkout import Coupon


class CouponError(Exception):
    """Base class for coupon errors."""


class CouponNotFoundError(CouponError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Coupon {code!r} not found")
        self.code = code


class CouponRejectedError(CouponError):
    def __init__(self, code: str, reason: str) -> None:
        super().__init__(reason)
        self.code = code
        self.reason = reason


class CouponService(Protocol):
    def get_coupon_by_code(self, code: str) -> Coupon | None: ...

    def count_redemptions(self, coupon_id: str, user_id: str) -> int: ...

    def apply_coupon(
        self,
        coupon_id: str,
        user_id: str,
        order_id: str,
        discount_amount: float,
    ) -> None: ...
