"""Shared checkout event schema (v1).

Post-commit bookkeeping (discount consumption, coupon redemption, cart clearing)
is recorded per order so operators can reconcile it against the order record.
"""

from __future__ import annotations

from enum import Enum


class EffectNameV1(str, Enum):
    MARK_WELCOME_DISCOUNT_USED = "mark_welcome_discount_used"
    REDEEM_COUPON = "redeem_coupon"
    CLEAR_CART = "clear_cart"


class EffectStatusV1(str, Enum):
    DONE = "DONE"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
