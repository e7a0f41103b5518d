from __future__ import annotations

import os

from services.checkout.app.engine.session import CheckoutPorts
from services.checkout.app.services.cart_mock import InMemoryCatalog, InMemoryMemberCarts
from services.checkout.app.services.coupon_mock import InMemoryCouponService
from services.checkout.app.services.effect_log import InMemoryEffectLog
from services.checkout.app.services.order_mock import MockOrderService
from services.checkout.app.services.welcome_mock import InMemoryWelcomeDiscountStore

_MOCK_PORTS: CheckoutPorts | None = None


def build_mock_ports() -> CheckoutPorts:
    catalog = InMemoryCatalog()
    orders = MockOrderService()
    return CheckoutPorts(
        catalog=catalog,
        member_carts=InMemoryMemberCarts(catalog),
        coupons=InMemoryCouponService(),
        orders=orders,
        order_history=orders,
        welcome_discounts=InMemoryWelcomeDiscountStore(),
        recorder=InMemoryEffectLog(),
    )


def reset_mock_ports() -> None:
    global _MOCK_PORTS
    _MOCK_PORTS = None


def get_checkout_ports() -> CheckoutPorts:
    """Select the adapter family based on env vars.

    Defaults to in-memory mocks so tests and local dev are deterministic unless explicitly
    configured otherwise. Mock state is shared for the life of the process.
    """

    global _MOCK_PORTS

    mode = os.getenv("SAMEDAY_BACKEND", "mock").strip().lower()

    if mode == "mock":
        if _MOCK_PORTS is None:
            _MOCK_PORTS = build_mock_ports()
        return _MOCK_PORTS

    if mode == "sql":
        from services.checkout.app.services.cart_sql import SqlCatalog, SqlMemberCarts
        from services.checkout.app.services.coupon_sql import SqlCouponService
        from services.checkout.app.services.effect_log_sql import SqlEffectLog
        from services.checkout.app.services.order_sql import SqlOrderService
        from services.checkout.app.services.welcome_sql import SqlWelcomeDiscountStore

        orders = SqlOrderService()
        return CheckoutPorts(
            catalog=SqlCatalog(),
            member_carts=SqlMemberCarts(),
            coupons=SqlCouponService(),
            orders=orders,
            order_history=orders,
            welcome_discounts=SqlWelcomeDiscountStore(),
            recorder=SqlEffectLog(),
        )

    raise ValueError(f"Unknown SAMEDAY_BACKEND={mode!r}. Expected mock or sql.")
