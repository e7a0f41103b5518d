from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from packages.shared.schemas.checkout_events_v1 import EffectNameV1, EffectStatusV1
from sqlalchemy import select
from sqlalchemy.orm import Session

from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.models.submission import EffectOutcome


class SqlEffectLog:
    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def record(self, order_id: str, user_id: str | None, outcome: EffectOutcome) -> None:
        with self._session_factory() as db:
            db.add(
                models.CheckoutEventLog(
                    id=uuid4().hex,
                    order_id=order_id,
                    user_id=user_id,
                    effect=outcome.effect.value,
                    status=outcome.status.value,
                    error=outcome.error,
                    payload_json=outcome.payload,
                )
            )
            db.commit()

    def list_for_order(self, order_id: str) -> list[EffectOutcome]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(models.CheckoutEventLog)
                .where(models.CheckoutEventLog.order_id == order_id)
                .order_by(models.CheckoutEventLog.created_at)
            ).all()

            return [
                EffectOutcome(
                    effect=EffectNameV1(row.effect),
                    status=EffectStatusV1(row.status),
                    error=row.error,
                    payload=row.payload_json or {},
                )
                for row in rows
            ]
