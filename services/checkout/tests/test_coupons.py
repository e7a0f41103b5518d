from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from services.checkout.app.engine.coupons import evaluate_coupon
from services.checkout.app.models.checkout import Coupon
from services.checkout.app.services.coupon_base import CouponRejectedError

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


def _coupon(**overrides: object) -> Coupon:
    data: dict[str, object] = {
        "id": "cpn-1",
        "code": "SAVE10",
        "discount_type": "percentage",
        "discount_value": 10,
    }
    data.update(overrides)
    return Coupon.model_validate(data)


def test_percentage_coupon() -> None:
    applied = evaluate_coupon(_coupon(), 80.0, NOW)

    assert applied.code == "SAVE10"
    assert applied.coupon_id == "cpn-1"
    assert applied.discount == pytest.approx(8.0)


def test_fixed_coupon_is_capped_at_subtotal() -> None:
    applied = evaluate_coupon(_coupon(discount_type="fixed", discount_value=50), 30.0, NOW)
    assert applied.discount == 30.0


def test_max_discount_caps_the_discount() -> None:
    applied = evaluate_coupon(_coupon(discount_value=50, max_discount=10), 100.0, NOW)
    assert applied.discount == 10.0


def test_never_expires_ignores_end_date() -> None:
    coupon = _coupon(end_date=NOW - timedelta(days=1), never_expires=True)
    assert evaluate_coupon(coupon, 50.0, NOW).discount == pytest.approx(5.0)


def test_minimum_purchase_message() -> None:
    coupon = _coupon(discount_type="fixed", discount_value=5, min_purchase=20)

    with pytest.raises(CouponRejectedError) as exc:
        evaluate_coupon(coupon, 15.0, NOW)

    assert exc.value.reason == "Minimum purchase of $20.00 required for this coupon"


def test_subtotal_equal_to_minimum_is_accepted() -> None:
    coupon = _coupon(discount_type="fixed", discount_value=5, min_purchase=20)
    assert evaluate_coupon(coupon, 20.0, NOW).discount == 5.0


@pytest.mark.parametrize(
    ("overrides", "redemptions", "reason"),
    [
        ({"status": "disabled"}, 0, "This coupon is no longer active"),
        ({"start_date": NOW + timedelta(days=1)}, 0, "This coupon is not valid yet"),
        ({"end_date": NOW - timedelta(seconds=1)}, 0, "This coupon has expired"),
        ({"total_usage_limit": 5, "used_count": 5}, 0, "This coupon has reached its usage limit"),
        ({"per_user_limit": 1}, 1, "You have already used this coupon"),
        ({"discount_type": "free_delivery"}, 0, "This coupon cannot be applied at checkout"),
    ],
)
def test_rejections(overrides: dict[str, object], redemptions: int, reason: str) -> None:
    with pytest.raises(CouponRejectedError) as exc:
        evaluate_coupon(_coupon(**overrides), 50.0, NOW, user_redemptions=redemptions)

    assert exc.value.reason == reason
    assert exc.value.code == "SAVE10"
