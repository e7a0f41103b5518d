"""One checkout session: the state a checkout screen edits, priced on demand."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from services.checkout.app.engine.cart_aggregator import aggregate_guest_cart, aggregate_member_cart
from services.checkout.app.engine.coupons import evaluate_coupon
from services.checkout.app.engine.pricing import PricingInputs, price_order
from services.checkout.app.engine.submitter import CheckoutSnapshot, OrderSubmitter
from services.checkout.app.models.cart import CartLineItem
from services.checkout.app.models.checkout import (
    AppliedCoupon,
    CheckoutForm,
    DiscountEligibility,
    GuestIdentity,
    PricedOrder,
)
from services.checkout.app.models.submission import (
    EffectOutcome,
    SubmissionResult,
    SubmissionState,
)
from services.checkout.app.services.cart_base import GuestCartStore, MemberCartStore, ProductCatalog
from services.checkout.app.services.coupon_base import CouponNotFoundError, CouponService
from services.checkout.app.services.effect_log import EffectRecorder
from services.checkout.app.services.identity_cache import GuestIdentityCache
from services.checkout.app.services.order_base import OrderHistory, OrderService
from services.checkout.app.services.welcome_base import WelcomeDiscountStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CheckoutPorts:
    catalog: ProductCatalog
    member_carts: MemberCartStore
    coupons: CouponService
    orders: OrderService
    order_history: OrderHistory
    welcome_discounts: WelcomeDiscountStore
    recorder: EffectRecorder


class CheckoutSession:
    def __init__(
        self,
        *,
        session_id: str,
        user_id: str | None,
        ports: CheckoutPorts,
        guest_cart: GuestCartStore,
        identity_cache: GuestIdentityCache,
        clock: Callable[[], datetime],
    ) -> None:
        self.session_id = session_id
        self.user_id = user_id
        self.form = CheckoutForm()

        self._ports = ports
        self._guest_cart = guest_cart
        self._identity_cache = identity_cache
        self._clock = clock
        self._coupon: AppliedCoupon | None = None

        self._submitter = OrderSubmitter(
            orders=ports.orders,
            coupons=ports.coupons,
            welcome_discounts=ports.welcome_discounts,
            member_carts=ports.member_carts,
            guest_cart=guest_cart,
            recorder=ports.recorder,
            clock=clock,
        )

        if user_id is None:
            cached = identity_cache.load()
            if cached is not None:
                self.form.guest = cached

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def coupon(self) -> AppliedCoupon | None:
        return self._coupon

    @property
    def state(self) -> SubmissionState:
        return self._submitter.state

    def update_form(self, changes: Mapping[str, Any]) -> CheckoutForm:
        """Apply a partial update. Nested sections merge field by field."""

        current = self.form.model_dump()
        for key, value in changes.items():
            if isinstance(value, Mapping) and isinstance(current.get(key), dict):
                current[key] = {**current[key], **value}
            else:
                current[key] = value

        form = CheckoutForm.model_validate(current)
        guest_changed = form.guest != self.form.guest
        self.form = form

        if guest_changed:
            self._remember_guest(form.guest)
        return form

    def update_guest_identity(self, identity: GuestIdentity) -> None:
        self.form.guest = identity
        self._remember_guest(identity)

    def _remember_guest(self, identity: GuestIdentity) -> None:
        if self.authenticated or identity.is_empty():
            return
        self._identity_cache.save(identity)

    def line_items(self) -> list[CartLineItem]:
        if self.user_id is not None:
            return aggregate_member_cart(self._ports.member_carts.fetch_rows(self.user_id))
        return aggregate_guest_cart(self._guest_cart.load(), self._ports.catalog)

    def eligibility(self, now: datetime | None = None) -> DiscountEligibility:
        if self.user_id is None:
            return DiscountEligibility()

        return DiscountEligibility(
            welcome_discount=self._ports.welcome_discounts.get_active(
                self.user_id, now or self._clock()
            ),
            prior_order_count=self._ports.order_history.count_orders(self.user_id),
            authenticated=True,
        )

    def apply_coupon(self, code: str) -> AppliedCoupon:
        normalized = code.strip()
        coupon = self._ports.coupons.get_coupon_by_code(normalized)
        if coupon is None:
            raise CouponNotFoundError(normalized)

        redemptions = 0
        if self.user_id is not None and coupon.per_user_limit is not None:
            redemptions = self._ports.coupons.count_redemptions(coupon.id, self.user_id)

        subtotal = sum(item.line_total for item in self.line_items())
        applied = evaluate_coupon(coupon, subtotal, self._clock(), user_redemptions=redemptions)
        self._coupon = applied

        logger.info("Coupon applied", session_id=self.session_id, code=applied.code)
        return applied

    def remove_coupon(self) -> None:
        self._coupon = None

    def _price(self, items: list[CartLineItem], now: datetime) -> PricedOrder:
        return price_order(
            PricingInputs(
                items=items,
                borough=self.form.delivery.borough,
                member=self.authenticated,
                now=now,
                tier=self.form.tier,
                eligibility=self.eligibility(now),
                coupon=self._coupon,
            )
        )

    def quote(self) -> PricedOrder:
        return self._price(self.line_items(), self._clock())

    def submit(self) -> SubmissionResult:
        now = self._clock()
        items = self.line_items()
        snapshot = CheckoutSnapshot(
            user_id=self.user_id,
            form=self.form,
            line_items=items,
            priced=self._price(items, now),
            coupon=self._coupon,
            now=now,
        )
        return self._submitter.submit(snapshot)

    def retry_failed_effects(self) -> list[EffectOutcome]:
        return self._submitter.retry_failed_effects()
