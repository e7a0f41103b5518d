"""Ordered pre-submission checks.

Checks run in a fixed order and stop at the first failure, so a submission
attempt reports exactly one problem: the most blocking one first (an empty
cart) before finer-grained field errors.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from services.checkout.app.engine.schedule import SCHEDULE_HORIZON_DAYS, find_slot, is_selectable
from services.checkout.app.models.cart import CartLineItem
from services.checkout.app.models.checkout import CheckoutForm, DeliveryTier, PricedOrder


class ValidationCode(str, Enum):
    CART_EMPTY = "CART_EMPTY"
    MISSING_ADDRESS = "MISSING_ADDRESS"
    GUEST_NAME = "GUEST_NAME"
    GUEST_PHONE = "GUEST_PHONE"
    GUEST_EMAIL = "GUEST_EMAIL"
    MISSING_SCHEDULE = "MISSING_SCHEDULE"
    INVALID_SCHEDULE = "INVALID_SCHEDULE"
    AGE_NOT_CONFIRMED = "AGE_NOT_CONFIRMED"
    LEGAL_NOT_CONFIRMED = "LEGAL_NOT_CONFIRMED"
    TERMS_NOT_CONFIRMED = "TERMS_NOT_CONFIRMED"
    NEGATIVE_TOTAL = "NEGATIVE_TOTAL"


CATALOG_PATH = "/"


class CheckoutValidationError(Exception):
    def __init__(self, code: ValidationCode, message: str, redirect: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.redirect = redirect


@dataclass(frozen=True, slots=True)
class CheckoutSnapshotView:
    """What the gate needs to know about a checkout attempt."""

    form: CheckoutForm
    line_items: Sequence[CartLineItem]
    authenticated: bool
    priced: PricedOrder
    today: date


_Check = Callable[[CheckoutSnapshotView], CheckoutValidationError | None]


def _check_cart(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    if not view.line_items:
        return CheckoutValidationError(
            ValidationCode.CART_EMPTY, "Your cart is empty", redirect=CATALOG_PATH
        )
    return None


def _check_address(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    delivery = view.form.delivery
    if not delivery.address.strip() or delivery.borough is None:
        return CheckoutValidationError(
            ValidationCode.MISSING_ADDRESS,
            "Please enter a delivery address and select borough",
        )
    return None


def _check_guest(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    if view.authenticated:
        return None

    guest = view.form.guest
    if not guest.name.strip():
        return CheckoutValidationError(ValidationCode.GUEST_NAME, "Please enter your name")
    if not guest.phone.strip():
        return CheckoutValidationError(ValidationCode.GUEST_PHONE, "Please enter your phone number")
    if not guest.email.strip() or "@" not in guest.email:
        return CheckoutValidationError(
            ValidationCode.GUEST_EMAIL, "Please enter a valid email address"
        )
    return None


def _check_schedule(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    form = view.form
    if form.tier != DeliveryTier.ECONOMY:
        return None

    window = form.scheduled_window
    if window is None:
        return CheckoutValidationError(
            ValidationCode.MISSING_SCHEDULE, "Please select a delivery date and time slot"
        )

    if find_slot(window.time_slot) is None:
        return CheckoutValidationError(
            ValidationCode.INVALID_SCHEDULE, "Please select one of the available time slots"
        )

    if not is_selectable(window.day, view.today):
        return CheckoutValidationError(
            ValidationCode.INVALID_SCHEDULE,
            f"Please select a delivery date within the next {SCHEDULE_HORIZON_DAYS} days",
        )
    return None


def _check_legal(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    legal = view.form.legal
    if not legal.age_confirmed:
        return CheckoutValidationError(
            ValidationCode.AGE_NOT_CONFIRMED, "Please confirm you are 21+ to proceed"
        )
    if not legal.legal_confirmed:
        return CheckoutValidationError(
            ValidationCode.LEGAL_NOT_CONFIRMED, "Please accept the legal terms to proceed"
        )
    if not legal.terms_confirmed:
        return CheckoutValidationError(
            ValidationCode.TERMS_NOT_CONFIRMED,
            "Please accept the terms and conditions to proceed",
        )
    return None


def _check_total(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    if view.priced.total < 0:
        return CheckoutValidationError(
            ValidationCode.NEGATIVE_TOTAL,
            "Your discounts exceed the order total. Remove a coupon to continue",
        )
    return None


CHECKS: tuple[_Check, ...] = (
    _check_cart,
    _check_address,
    _check_guest,
    _check_schedule,
    _check_legal,
    _check_total,
)


def first_failure(view: CheckoutSnapshotView) -> CheckoutValidationError | None:
    for check in CHECKS:
        failure = check(view)
        if failure is not None:
            return failure
    return None


def validate_checkout(view: CheckoutSnapshotView) -> None:
    failure = first_failure(view)
    if failure is not None:
        raise failure
