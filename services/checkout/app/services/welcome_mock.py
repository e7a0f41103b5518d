from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from services.checkout.app.models.checkout import WelcomeDiscount
from services.checkout.app.services.welcome_base import WelcomeDiscountNotFoundError


class InMemoryWelcomeDiscountStore:
    def __init__(self, discounts: Iterable[WelcomeDiscount] = ()) -> None:
        self._discounts = {discount.id: discount for discount in discounts}

    def add(self, discount: WelcomeDiscount) -> None:
        self._discounts[discount.id] = discount

    def get(self, discount_id: str) -> WelcomeDiscount | None:
        return self._discounts.get(discount_id)

    def get_active(self, user_id: str, now: datetime) -> WelcomeDiscount | None:
        return next(
            (d for d in self._discounts.values() if d.user_id == user_id and d.is_active(now)),
            None,
        )

    def mark_used(self, discount_id: str, order_id: str, used_at: datetime) -> None:
        discount = self._discounts.get(discount_id)
        if discount is None:
            raise WelcomeDiscountNotFoundError(discount_id)

        self._discounts[discount_id] = discount.model_copy(
            update={"used": True, "used_at": used_at, "order_id": order_id}
        )
