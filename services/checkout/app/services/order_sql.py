from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from packages.shared.schemas.order_v1 import OrderCreationResponseV1, OrderPayloadV1
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.services.order_base import OrderServiceError


class SqlOrderService:
    """Persists the order and its items in one transaction."""

    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def create_order(self, payload: OrderPayloadV1) -> OrderCreationResponseV1:
        order_id = uuid4().hex
        scheduled = payload.scheduled_delivery_time

        try:
            with self._session_factory() as db:
                db.add(
                    models.Order(
                        id=order_id,
                        user_id=payload.user_id,
                        delivery_address=payload.delivery_address,
                        delivery_borough=payload.delivery_borough,
                        payment_method=payload.payment_method,
                        subtotal=payload.subtotal,
                        delivery_fee=payload.delivery_fee,
                        total_amount=payload.total_amount,
                        scheduled_delivery_time=models.to_utc(scheduled) if scheduled else None,
                        payload_json=payload.model_dump(mode="json"),
                    )
                )
                db.flush()
                for item in payload.cart_items:
                    db.add(
                        models.OrderItem(
                            id=uuid4().hex,
                            order_id=order_id,
                            product_id=item.product_id,
                            product_name=item.product_name,
                            quantity=item.quantity,
                            price=item.price,
                            selected_weight=item.selected_weight,
                        )
                    )
                db.commit()
        except SQLAlchemyError as e:
            raise OrderServiceError("Could not save order. Please try again.") from e

        return OrderCreationResponseV1(order_id=order_id)

    def count_orders(self, user_id: str) -> int:
        with self._session_factory() as db:
            return db.scalar(
                select(func.count()).select_from(models.Order).where(models.Order.user_id == user_id)
            ) or 0
