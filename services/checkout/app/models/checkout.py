from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class Borough(str, Enum):
    BROOKLYN = "brooklyn"
    QUEENS = "queens"
    MANHATTAN = "manhattan"


class DeliveryTier(str, Enum):
    EXPRESS = "express"
    STANDARD = "standard"
    ECONOMY = "economy"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BITCOIN = "bitcoin"


class DeliveryContext(BaseModel):
    address: str = ""
    lat: float | None = None
    lng: float | None = None
    borough: Borough | None = None


class ScheduledWindow(BaseModel):
    day: date
    time_slot: str


class LegalConfirmations(BaseModel):
    age_confirmed: bool = False
    legal_confirmed: bool = False
    terms_confirmed: bool = False


class GuestIdentity(BaseModel):
    name: str = ""
    phone: str = ""
    email: str = ""

    def is_empty(self) -> bool:
        return not (self.name or self.phone or self.email)


class WelcomeDiscount(BaseModel):
    id: str
    user_id: str
    code: str | None = None
    discount_percentage: float
    issued_at: datetime | None = None
    expires_at: datetime
    used: bool = False
    used_at: datetime | None = None
    order_id: str | None = None

    def is_active(self, now: datetime) -> bool:
        return not self.used and self.expires_at >= now


class DiscountEligibility(BaseModel):
    welcome_discount: WelcomeDiscount | None = None
    prior_order_count: int = 0
    authenticated: bool = False

    @property
    def first_order(self) -> bool:
        return self.authenticated and self.prior_order_count == 0


class Coupon(BaseModel):
    id: str
    code: str
    discount_type: str
    discount_value: float
    min_purchase: float | None = None
    max_discount: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    never_expires: bool = False
    status: str = "active"
    total_usage_limit: int | None = None
    used_count: int = 0
    per_user_limit: int | None = None


class AppliedCoupon(BaseModel):
    code: str
    discount: float
    coupon_id: str | None = None


class NoDiscount(BaseModel):
    kind: Literal["none"] = "none"
    amount: float = 0.0


class WelcomeDiscountApplied(BaseModel):
    kind: Literal["welcome"] = "welcome"
    amount: float
    discount_id: str
    percentage: float


class FirstOrderDiscountApplied(BaseModel):
    kind: Literal["first_order"] = "first_order"
    amount: float


# At most one membership discount can be active. Coupons are tracked separately.
ActiveDiscount = Annotated[
    NoDiscount | WelcomeDiscountApplied | FirstOrderDiscountApplied,
    Field(discriminator="kind"),
]


class PricedOrder(BaseModel):
    subtotal: float
    delivery_fee: float
    membership_discount: ActiveDiscount = Field(default_factory=NoDiscount)
    coupon_discount: float = 0.0
    total: float

    # Guest comparison, display only.
    guest_delivery_fee: float
    guest_total: float

    free_delivery: bool
    amount_to_free_delivery: float
    manhattan_surcharge: float
    member_savings: float
    potential_member_savings: float
    express_surcharge_preview: float

    @property
    def welcome_discount_amount(self) -> float:
        if isinstance(self.membership_discount, WelcomeDiscountApplied):
            return self.membership_discount.amount
        return 0.0

    @property
    def first_order_discount_amount(self) -> float:
        if isinstance(self.membership_discount, FirstOrderDiscountApplied):
            return self.membership_discount.amount
        return 0.0


class CheckoutForm(BaseModel):
    """User-editable checkout inputs for one session."""

    delivery: DeliveryContext = Field(default_factory=DeliveryContext)
    tier: DeliveryTier = DeliveryTier.STANDARD
    scheduled_date: date | None = None
    time_slot: str | None = None
    legal: LegalConfirmations = Field(default_factory=LegalConfirmations)
    guest: GuestIdentity = Field(default_factory=GuestIdentity)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""

    @property
    def scheduled_window(self) -> ScheduledWindow | None:
        if self.scheduled_date is None or not self.time_slot:
            return None
        return ScheduledWindow(day=self.scheduled_date, time_slot=self.time_slot)
