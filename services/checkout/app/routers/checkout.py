from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from services.checkout.app.config import CheckoutSettings
from services.checkout.app.engine.pricing import format_money
from services.checkout.app.engine.schedule import TIME_SLOTS, selectable_dates
from services.checkout.app.engine.session import CheckoutSession
from services.checkout.app.engine.submitter import (
    SubmissionClosedError,
    SubmissionError,
    SubmissionInFlightError,
)
from services.checkout.app.engine.validation import CheckoutValidationError
from services.checkout.app.models.api import (
    CheckoutFormPatch,
    CouponRequest,
    EffectsOut,
    QuoteOut,
    SessionCreateRequest,
    SessionOut,
    SlotsOut,
    SubmitOut,
    TimeSlotOut,
)
from services.checkout.app.models.checkout import AppliedCoupon
from services.checkout.app.models.submission import SubmissionPhase
from services.checkout.app.services.cart_base import CartSourceError
from services.checkout.app.services.cart_mock import InMemoryGuestCart
from services.checkout.app.services.coupon_base import (
    CouponError,
    CouponNotFoundError,
    CouponRejectedError,
)
from services.checkout.app.services.factory import get_checkout_ports
from services.checkout.app.services.identity_cache import (
    InMemoryIdentityCache,
    JsonFileIdentityCache,
)
from services.checkout.app.services.session_store import store
from services.checkout.app.services.welcome_base import WelcomeDiscountStoreError

logger = structlog.get_logger(__name__)

router = APIRouter()

CONFIRMATION_PATH = "/order-confirmation"


def _raise_collaborator_http_error(e: Exception) -> None:
    if isinstance(e, CouponNotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, CouponRejectedError):
        raise HTTPException(status_code=422, detail=str(e)) from e

    if isinstance(e, (CouponError, CartSourceError, WelcomeDiscountStoreError)):
        raise HTTPException(status_code=502, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def _get_session(session_id: str) -> CheckoutSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Checkout session not found")
    return session


def _session_out(session: CheckoutSession) -> SessionOut:
    return SessionOut(
        session_id=session.session_id,
        user_id=session.user_id,
        authenticated=session.authenticated,
        form=session.form,
        coupon=session.coupon,
        state=session.state,
        can_submit=session.state.can_submit,
    )


@router.post("/v1/checkout/sessions", response_model=SessionOut)
def open_session(payload: SessionCreateRequest) -> SessionOut:
    settings = CheckoutSettings.from_env()
    try:
        ports = get_checkout_ports()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    if payload.device_id:
        identity_cache = JsonFileIdentityCache.for_device(settings.guest_cache_dir, payload.device_id)
    else:
        identity_cache = InMemoryIdentityCache()

    tz = settings.tz
    session = CheckoutSession(
        session_id=uuid4().hex,
        user_id=payload.user_id,
        ports=ports,
        guest_cart=InMemoryGuestCart(payload.guest_cart),
        identity_cache=identity_cache,
        clock=lambda: datetime.now(tz),
    )
    store.save(session)

    logger.info(
        "Checkout session opened",
        session_id=session.session_id,
        authenticated=session.authenticated,
    )
    return _session_out(session)


@router.get("/v1/checkout/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str) -> SessionOut:
    return _session_out(_get_session(session_id))


@router.patch("/v1/checkout/sessions/{session_id}", response_model=SessionOut)
def update_session(session_id: str, payload: CheckoutFormPatch) -> SessionOut:
    session = _get_session(session_id)
    if session.state.phase == SubmissionPhase.SUBMITTING:
        raise HTTPException(status_code=409, detail="An order submission is already in progress")

    try:
        session.update_form(payload.model_dump(mode="json", exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False)) from e

    return _session_out(session)


@router.post("/v1/checkout/sessions/{session_id}/coupon", response_model=AppliedCoupon)
def apply_coupon(session_id: str, payload: CouponRequest) -> AppliedCoupon:
    session = _get_session(session_id)
    try:
        return session.apply_coupon(payload.code)
    except Exception as e:
        _raise_collaborator_http_error(e)


@router.delete("/v1/checkout/sessions/{session_id}/coupon", response_model=SessionOut)
def remove_coupon(session_id: str) -> SessionOut:
    session = _get_session(session_id)
    session.remove_coupon()
    return _session_out(session)


@router.get("/v1/checkout/sessions/{session_id}/quote", response_model=QuoteOut)
def quote(session_id: str) -> QuoteOut:
    session = _get_session(session_id)
    try:
        items = session.line_items()
        priced = session.quote()
    except Exception as e:
        _raise_collaborator_http_error(e)

    return QuoteOut(
        line_items=items,
        priced=priced,
        coupon=session.coupon,
        display={
            "subtotal": format_money(priced.subtotal),
            "delivery_fee": format_money(priced.delivery_fee),
            "membership_discount": format_money(priced.membership_discount.amount),
            "coupon_discount": format_money(priced.coupon_discount),
            "total": format_money(priced.total),
            "guest_total": format_money(priced.guest_total),
        },
    )


@router.post("/v1/checkout/sessions/{session_id}/submit", response_model=SubmitOut)
def submit(session_id: str) -> SubmitOut:
    session = _get_session(session_id)

    try:
        result = session.submit()
    except CheckoutValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": e.code.value, "message": e.message, "redirect": e.redirect},
        ) from e
    except SubmissionInFlightError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except SubmissionClosedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except SubmissionError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    except Exception as e:
        _raise_collaborator_http_error(e)

    return SubmitOut(
        order_id=result.order_id,
        state=session.state,
        effects=result.effects,
        redirect=f"{CONFIRMATION_PATH}?orderId={result.order_id}",
    )


@router.post("/v1/checkout/sessions/{session_id}/effects/retry", response_model=EffectsOut)
def retry_effects(session_id: str) -> EffectsOut:
    session = _get_session(session_id)
    if session.state.order_id is None:
        raise HTTPException(status_code=409, detail="No order has been placed in this session")

    outcomes = session.retry_failed_effects()
    return EffectsOut.from_outcomes(session.state.order_id, outcomes)


@router.get("/v1/checkout/slots", response_model=SlotsOut)
def delivery_slots() -> SlotsOut:
    today = datetime.now(CheckoutSettings.from_env().tz).date()
    return SlotsOut(
        dates=selectable_dates(today),
        slots=[TimeSlotOut(value=s.value, label=s.label, time=s.time) for s in TIME_SLOTS],
    )
