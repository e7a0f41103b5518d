from __future__ import annotations

from datetime import datetime
from typing import Protocol

from services.checkout.app.models.checkout import WelcomeDiscount


class WelcomeDiscountStoreError(Exception):
    """Base class for welcome discount store errors."""


class WelcomeDiscountNotFoundError(WelcomeDiscountStoreError):
    def __init__(self, discount_id: str) -> None:
        super().__init__(f"Welcome discount {discount_id!r} not found")
        self.discount_id = discount_id


class WelcomeDiscountStore(Protocol):
    def get_active(self, user_id: str, now: datetime) -> WelcomeDiscount | None:
        """Return the user's unused, unexpired welcome discount, if any."""
        ...

    def mark_used(self, discount_id: str, order_id: str, used_at: datetime) -> None: ...
