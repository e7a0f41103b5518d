from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.models.checkout import Coupon
from services.checkout.app.services.coupon_base import CouponNotFoundError


def _coupon_out(row: models.CouponCode) -> Coupon:
    return Coupon(
        id=row.id,
        code=row.code,
        discount_type=row.discount_type,
        discount_value=row.discount_value,
        min_purchase=row.min_purchase,
        max_discount=row.max_discount,
        start_date=models.as_utc(row.start_date),
        end_date=models.as_utc(row.end_date),
        never_expires=bool(row.never_expires),
        status=row.status or "active",
        total_usage_limit=row.total_usage_limit,
        used_count=row.used_count or 0,
        per_user_limit=row.per_user_limit,
    )


class SqlCouponService:
    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def get_coupon_by_code(self, code: str) -> Coupon | None:
        with self._session_factory() as db:
            row = db.scalars(
                select(models.CouponCode).where(
                    func.lower(models.CouponCode.code) == code.strip().lower()
                )
            ).first()
            return _coupon_out(row) if row is not None else None

    def count_redemptions(self, coupon_id: str, user_id: str) -> int:
        with self._session_factory() as db:
            return db.scalar(
                select(func.count())
                .select_from(models.CouponRedemption)
                .where(
                    models.CouponRedemption.coupon_id == coupon_id,
                    models.CouponRedemption.user_id == user_id,
                )
            ) or 0

    def apply_coupon(
        self,
        coupon_id: str,
        user_id: str,
        order_id: str,
        discount_amount: float,
    ) -> None:
        with self._session_factory() as db:
            coupon = db.get(models.CouponCode, coupon_id)
            if coupon is None:
                raise CouponNotFoundError(coupon_id)

            db.add(
                models.CouponRedemption(
                    id=uuid4().hex,
                    coupon_id=coupon_id,
                    user_id=user_id,
                    order_id=order_id,
                    discount_amount=discount_amount,
                )
            )
            coupon.used_count = (coupon.used_count or 0) + 1
            db.commit()
