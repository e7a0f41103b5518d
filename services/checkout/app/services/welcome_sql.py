from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.models.checkout import WelcomeDiscount
from services.checkout.app.services.welcome_base import WelcomeDiscountNotFoundError


def _discount_out(row: models.UserWelcomeDiscount) -> WelcomeDiscount:
    return WelcomeDiscount(
        id=row.id,
        user_id=row.user_id,
        code=row.code,
        discount_percentage=row.discount_percentage,
        issued_at=models.as_utc(row.issued_at),
        expires_at=models.as_utc(row.expires_at),
        used=bool(row.used),
        used_at=models.as_utc(row.used_at),
        order_id=row.order_id,
    )


class SqlWelcomeDiscountStore:
    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def get_active(self, user_id: str, now: datetime) -> WelcomeDiscount | None:
        with self._session_factory() as db:
            rows = db.scalars(
                select(models.UserWelcomeDiscount)
                .where(
                    models.UserWelcomeDiscount.user_id == user_id,
                    models.UserWelcomeDiscount.used.is_(False),
                )
                .order_by(models.UserWelcomeDiscount.expires_at)
            ).all()

        return next(
            (d for d in map(_discount_out, rows) if d.is_active(models.to_utc(now))),
            None,
        )

    def mark_used(self, discount_id: str, order_id: str, used_at: datetime) -> None:
        with self._session_factory() as db:
            row = db.get(models.UserWelcomeDiscount, discount_id)
            if row is None:
                raise WelcomeDiscountNotFoundError(discount_id)

            row.used = True
            row.used_at = models.to_utc(used_at)
            row.order_id = order_id
            db.commit()
