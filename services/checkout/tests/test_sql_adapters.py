from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from packages.shared.schemas.checkout_events_v1 import EffectNameV1, EffectStatusV1
from packages.shared.schemas.order_v1 import OrderPayloadItemV1, OrderPayloadV1
from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.models.submission import EffectOutcome
from services.checkout.app.services.cart_sql import SqlCatalog, SqlMemberCarts
from services.checkout.app.services.coupon_base import CouponNotFoundError
from services.checkout.app.services.coupon_sql import SqlCouponService
from services.checkout.app.services.effect_log_sql import SqlEffectLog
from services.checkout.app.services.order_sql import SqlOrderService
from services.checkout.app.services.welcome_base import WelcomeDiscountNotFoundError
from services.checkout.app.services.welcome_sql import SqlWelcomeDiscountStore

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'sameday_sql.db'}")
    monkeypatch.setenv("SAMEDAY_DB_AUTO_CREATE", "true")

    from services.checkout.app.db.init_db import init_db

    init_db()

    with db_session() as db:
        db.add_all(
            [
                models.Product(id="prod-flower", name="Flower", price=35.0, prices={"7g": 60.0}),
                models.Product(id="prod-gummies", name="Gummies", price=20.0),
                models.CouponCode(
                    id="cpn-1",
                    code="Spring20",
                    discount_type="percentage",
                    discount_value=20,
                    end_date=NOW + timedelta(days=10),
                ),
                models.UserWelcomeDiscount(
                    id="wd-expired",
                    user_id="u-1",
                    discount_percentage=15,
                    expires_at=NOW - timedelta(days=1),
                ),
                models.UserWelcomeDiscount(
                    id="wd-1",
                    user_id="u-1",
                    discount_percentage=10,
                    expires_at=NOW + timedelta(days=5),
                ),
            ]
        )
        db.commit()


def _payload(user_id: str | None = "u-1") -> OrderPayloadV1:
    return OrderPayloadV1(
        user_id=user_id,
        delivery_address="1 Main St",
        delivery_borough="queens",
        payment_method="cash",
        subtotal=40.0,
        delivery_fee=5.0,
        total_amount=45.0,
        scheduled_delivery_time=datetime(2026, 3, 3, 9, 0, tzinfo=timezone(timedelta(hours=-5))),
        cart_items=[OrderPayloadItemV1(product_id="prod-gummies", quantity=2, price=20.0)],
    )


def test_catalog_returns_only_known_products() -> None:
    products = SqlCatalog().get_products(["prod-flower", "prod-gone"])

    assert [p.id for p in products] == ["prod-flower"]
    assert products[0].prices == {"7g": 60.0}
    assert SqlCatalog().get_products([]) == []


def test_member_cart_outer_joins_products() -> None:
    carts = SqlMemberCarts()
    carts.add_item("u-1", "prod-flower", 1, "7g")
    carts.add_item("u-1", "prod-deleted", 3)
    carts.add_item("u-2", "prod-gummies", 1)

    rows = carts.fetch_rows("u-1")

    assert {r.product_id for r in rows} == {"prod-flower", "prod-deleted"}
    by_id = {r.product_id: r for r in rows}
    assert by_id["prod-flower"].product.name == "Flower"
    assert by_id["prod-deleted"].product is None

    carts.invalidate("u-1")
    assert carts.fetch_rows("u-1") == []
    assert len(carts.fetch_rows("u-2")) == 1


def test_coupon_lookup_and_redemption() -> None:
    coupons = SqlCouponService()
    orders = SqlOrderService()
    order_id = orders.create_order(_payload()).order_id

    coupon = coupons.get_coupon_by_code(" spring20 ")
    assert coupon is not None
    assert coupon.end_date == NOW + timedelta(days=10)
    assert coupons.get_coupon_by_code("WINTER") is None

    coupons.apply_coupon("cpn-1", "u-1", order_id, 8.0)

    assert coupons.count_redemptions("cpn-1", "u-1") == 1
    assert coupons.count_redemptions("cpn-1", "u-2") == 0
    assert coupons.get_coupon_by_code("SPRING20").used_count == 1

    with pytest.raises(CouponNotFoundError):
        coupons.apply_coupon("cpn-missing", "u-1", order_id, 1.0)


def test_welcome_discount_lifecycle() -> None:
    store = SqlWelcomeDiscountStore()

    active = store.get_active("u-1", NOW)
    assert active is not None
    assert active.id == "wd-1"
    assert active.expires_at.tzinfo is not None

    store.mark_used("wd-1", "ord-1", NOW)

    assert store.get_active("u-1", NOW) is None
    with pytest.raises(WelcomeDiscountNotFoundError):
        store.mark_used("wd-missing", "ord-1", NOW)


def test_order_is_persisted_with_items() -> None:
    orders = SqlOrderService()

    response = orders.create_order(_payload())

    assert response.order_id
    assert response.error is None
    with db_session() as db:
        order = db.get(models.Order, response.order_id)
        assert order is not None
        assert order.total_amount == 45.0
        assert models.as_utc(order.scheduled_delivery_time) == datetime(
            2026, 3, 3, 14, 0, tzinfo=timezone.utc
        )
        items = db.query(models.OrderItem).filter_by(order_id=response.order_id).all()
        assert [(i.product_id, i.quantity) for i in items] == [("prod-gummies", 2)]

    assert orders.count_orders("u-1") == 1
    assert orders.count_orders("u-2") == 0
    orders.create_order(_payload(user_id=None))
    assert orders.count_orders("u-1") == 1


def test_effect_log_round_trip() -> None:
    log = SqlEffectLog()
    log.record(
        "ord-1",
        "u-1",
        EffectOutcome(
            effect=EffectNameV1.REDEEM_COUPON,
            status=EffectStatusV1.FAILED,
            error="coupon store unavailable",
        ),
    )
    log.record(
        "ord-1",
        "u-1",
        EffectOutcome(
            effect=EffectNameV1.CLEAR_CART,
            status=EffectStatusV1.DONE,
            payload={"cart": "member", "user_id": "u-1"},
        ),
    )

    outcomes = log.list_for_order("ord-1")

    assert {(o.effect, o.status) for o in outcomes} == {
        (EffectNameV1.REDEEM_COUPON, EffectStatusV1.FAILED),
        (EffectNameV1.CLEAR_CART, EffectStatusV1.DONE),
    }
    assert log.list_for_order("ord-2") == []
