"""Order submission: validation gate, order creation, post-commit bookkeeping.

The order returned by the order-creation service is authoritative. Once it
exists the remaining steps (consuming the welcome discount, redeeming the
coupon, clearing the cart) run one after another, each recorded on its own,
and none of them can undo or block the order.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from packages.shared.schemas.checkout_events_v1 import EffectNameV1, EffectStatusV1
from packages.shared.schemas.order_v1 import OrderPayloadItemV1, OrderPayloadV1

from services.checkout.app.engine.schedule import resolve_scheduled_time
from services.checkout.app.engine.validation import (
    CheckoutSnapshotView,
    CheckoutValidationError,
    validate_checkout,
)
from services.checkout.app.models.cart import CartLineItem
from services.checkout.app.models.checkout import (
    AppliedCoupon,
    CheckoutForm,
    PricedOrder,
    WelcomeDiscountApplied,
)
from services.checkout.app.models.submission import (
    EffectOutcome,
    SubmissionPhase,
    SubmissionResult,
    SubmissionState,
)
from services.checkout.app.services.cart_base import GuestCartStore, MemberCartStore
from services.checkout.app.services.coupon_base import CouponService
from services.checkout.app.services.effect_log import EffectRecorder
from services.checkout.app.services.order_base import OrderService
from services.checkout.app.services.welcome_base import WelcomeDiscountStore

logger = structlog.get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "Failed to place order"


class SubmissionError(Exception):
    """The order-creation call failed. The message is shown to the user as-is."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubmissionInFlightError(Exception):
    def __init__(self) -> None:
        super().__init__("An order submission is already in progress")


class SubmissionClosedError(Exception):
    def __init__(self, order_id: str | None) -> None:
        placed = f"order {order_id}" if order_id else "an order"
        super().__init__(f"This checkout already placed {placed}")
        self.order_id = order_id


@dataclass(frozen=True, slots=True)
class CheckoutSnapshot:
    user_id: str | None
    form: CheckoutForm
    line_items: Sequence[CartLineItem]
    priced: PricedOrder
    coupon: AppliedCoupon | None
    now: datetime

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


def build_order_payload(snapshot: CheckoutSnapshot) -> OrderPayloadV1:
    form = snapshot.form
    delivery = form.delivery
    guest = None if snapshot.authenticated else form.guest
    if delivery.borough is None:
        raise ValueError("An order payload needs a delivery borough")

    scheduled = resolve_scheduled_time(form.tier, form.scheduled_window, snapshot.now.tzinfo)

    return OrderPayloadV1(
        user_id=snapshot.user_id,
        delivery_address=delivery.address,
        delivery_borough=delivery.borough.value,
        dropoff_lat=delivery.lat,
        dropoff_lng=delivery.lng,
        payment_method=form.payment_method.value,
        subtotal=snapshot.priced.subtotal,
        delivery_fee=snapshot.priced.delivery_fee,
        total_amount=snapshot.priced.total,
        scheduled_delivery_time=scheduled,
        delivery_notes=form.notes or None,
        customer_name=guest.name if guest else None,
        customer_phone=guest.phone if guest else None,
        customer_email=guest.email if guest else None,
        cart_items=[
            OrderPayloadItemV1(
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.unit_price,
                product_name=item.product_name,
                selected_weight=item.selected_weight,
            )
            for item in snapshot.line_items
        ],
    )


_Effect = Callable[[], dict[str, Any] | None]


class OrderSubmitter:
    """Drives one checkout session from IDLE to SUCCEEDED.

    FAILED is a resting state: the user fixes the problem and submits again.
    SUCCEEDED is terminal.
    """

    def __init__(
        self,
        *,
        orders: OrderService,
        coupons: CouponService,
        welcome_discounts: WelcomeDiscountStore,
        member_carts: MemberCartStore,
        guest_cart: GuestCartStore,
        recorder: EffectRecorder,
        clock: Callable[[], datetime],
    ) -> None:
        self._orders = orders
        self._coupons = coupons
        self._welcome_discounts = welcome_discounts
        self._member_carts = member_carts
        self._guest_cart = guest_cart
        self._recorder = recorder
        self._clock = clock

        self._state = SubmissionState()
        self._in_flight = threading.Lock()
        self._retryable: dict[EffectNameV1, _Effect] = {}
        self._last_user_id: str | None = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    def submit(self, snapshot: CheckoutSnapshot) -> SubmissionResult:
        if not self._in_flight.acquire(blocking=False):
            raise SubmissionInFlightError()

        try:
            if self._state.phase == SubmissionPhase.SUCCEEDED:
                raise SubmissionClosedError(self._state.order_id)
            return self._submit(snapshot)
        finally:
            self._in_flight.release()

    def _submit(self, snapshot: CheckoutSnapshot) -> SubmissionResult:
        self._state = SubmissionState(phase=SubmissionPhase.VALIDATING)
        try:
            validate_checkout(
                CheckoutSnapshotView(
                    form=snapshot.form,
                    line_items=snapshot.line_items,
                    authenticated=snapshot.authenticated,
                    priced=snapshot.priced,
                    today=snapshot.now.date(),
                )
            )
        except CheckoutValidationError as e:
            logger.info("Checkout validation failed", code=e.code.value, user_id=snapshot.user_id)
            self._state = SubmissionState(
                phase=SubmissionPhase.FAILED, error=e.message, error_code=e.code.value
            )
            raise

        payload = build_order_payload(snapshot)
        self._state = SubmissionState(phase=SubmissionPhase.SUBMITTING)

        try:
            response = self._orders.create_order(payload)
        except Exception as e:
            message = str(e) or DEFAULT_FAILURE_MESSAGE
            self._fail(message, snapshot)
            raise SubmissionError(message) from e

        if response.error or not response.order_id:
            message = response.error or DEFAULT_FAILURE_MESSAGE
            self._fail(message, snapshot)
            raise SubmissionError(message)

        order_id = response.order_id
        logger.info(
            "Order created",
            order_id=order_id,
            user_id=snapshot.user_id,
            total=snapshot.priced.total,
            items=len(snapshot.line_items),
        )

        effects = self._run_post_commit(order_id, snapshot)
        self._state = SubmissionState(phase=SubmissionPhase.SUCCEEDED, order_id=order_id)
        return SubmissionResult(order_id=order_id, effects=effects)

    def _fail(self, message: str, snapshot: CheckoutSnapshot) -> None:
        logger.warning("Order submission failed", error=message, user_id=snapshot.user_id)
        self._state = SubmissionState(phase=SubmissionPhase.FAILED, error=message)

    # -------------------------------------------------------------------
    # Post-commit effects
    # -------------------------------------------------------------------
    def _run_post_commit(self, order_id: str, snapshot: CheckoutSnapshot) -> list[EffectOutcome]:
        self._retryable = {}
        self._last_user_id = snapshot.user_id

        steps: list[tuple[EffectNameV1, _Effect]] = [
            (
                EffectNameV1.MARK_WELCOME_DISCOUNT_USED,
                lambda: self._mark_welcome_discount_used(order_id, snapshot),
            ),
            (EffectNameV1.REDEEM_COUPON, lambda: self._redeem_coupon(order_id, snapshot)),
            (EffectNameV1.CLEAR_CART, lambda: self._clear_cart(snapshot)),
        ]

        return [self._run_effect(order_id, snapshot.user_id, name, effect) for name, effect in steps]

    def retry_failed_effects(self) -> list[EffectOutcome]:
        """Re-run the effects that failed after the last successful order."""

        order_id = self._state.order_id
        if self._state.phase != SubmissionPhase.SUCCEEDED or order_id is None:
            return []

        pending = list(self._retryable.items())
        self._retryable = {}
        return [
            self._run_effect(order_id, self._last_user_id, name, effect) for name, effect in pending
        ]

    def _run_effect(
        self,
        order_id: str,
        user_id: str | None,
        name: EffectNameV1,
        effect: _Effect,
    ) -> EffectOutcome:
        try:
            payload = effect()
        except Exception as e:
            logger.warning(
                "Post-commit effect failed",
                order_id=order_id,
                effect=name.value,
                error=str(e),
            )
            self._retryable[name] = effect
            outcome = EffectOutcome(
                effect=name, status=EffectStatusV1.FAILED, error=str(e) or type(e).__name__
            )
        else:
            if payload is None:
                outcome = EffectOutcome(effect=name, status=EffectStatusV1.SKIPPED)
            else:
                logger.info("Post-commit effect done", order_id=order_id, effect=name.value)
                outcome = EffectOutcome(effect=name, status=EffectStatusV1.DONE, payload=payload)

        try:
            self._recorder.record(order_id, user_id, outcome)
        except Exception as e:
            logger.error(
                "Could not record post-commit effect",
                order_id=order_id,
                effect=name.value,
                status=outcome.status.value,
                error=str(e),
            )
        return outcome

    def _mark_welcome_discount_used(
        self, order_id: str, snapshot: CheckoutSnapshot
    ) -> dict[str, Any] | None:
        discount = snapshot.priced.membership_discount
        if snapshot.user_id is None or not isinstance(discount, WelcomeDiscountApplied):
            return None

        used_at = self._clock()
        self._welcome_discounts.mark_used(discount.discount_id, order_id, used_at)
        return {"discount_id": discount.discount_id, "used_at": used_at.isoformat()}

    def _redeem_coupon(self, order_id: str, snapshot: CheckoutSnapshot) -> dict[str, Any] | None:
        coupon = snapshot.coupon
        if snapshot.user_id is None or coupon is None or coupon.coupon_id is None:
            return None

        self._coupons.apply_coupon(coupon.coupon_id, snapshot.user_id, order_id, coupon.discount)
        return {
            "coupon_id": coupon.coupon_id,
            "code": coupon.code,
            "discount_amount": coupon.discount,
        }

    def _clear_cart(self, snapshot: CheckoutSnapshot) -> dict[str, Any]:
        if snapshot.user_id is not None:
            self._member_carts.invalidate(snapshot.user_id)
            return {"cart": "member", "user_id": snapshot.user_id}

        self._guest_cart.clear()
        return {"cart": "guest"}
