from __future__ import annotations

from collections.abc import Callable, Sequence
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from services.checkout.app.db import models
from services.checkout.app.db.database import db_session
from services.checkout.app.models.cart import MemberCartRow, Product
from services.checkout.app.services.cart_base import CartSourceError


def _product_out(row: models.Product) -> Product:
    return Product(id=row.id, name=row.name, price=row.price, prices=row.prices)


class SqlCatalog:
    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def get_products(self, product_ids: Sequence[str]) -> list[Product]:
        if not product_ids:
            return []

        try:
            with self._session_factory() as db:
                rows = db.scalars(
                    select(models.Product).where(models.Product.id.in_(list(product_ids)))
                ).all()
        except SQLAlchemyError as e:
            raise CartSourceError(f"Could not load products: {e}") from e

        return [_product_out(row) for row in rows]


class SqlMemberCarts:
    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        selected_weight: str | None = None,
    ) -> str:
        item_id = uuid4().hex
        with self._session_factory() as db:
            db.add(
                models.CartItem(
                    id=item_id,
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                    selected_weight=selected_weight,
                )
            )
            db.commit()
        return item_id

    def fetch_rows(self, user_id: str) -> list[MemberCartRow]:
        try:
            with self._session_factory() as db:
                rows = db.execute(
                    select(models.CartItem, models.Product)
                    .outerjoin(models.Product, models.Product.id == models.CartItem.product_id)
                    .where(models.CartItem.user_id == user_id)
                    .order_by(models.CartItem.created_at)
                ).all()
        except SQLAlchemyError as e:
            raise CartSourceError(f"Could not load cart: {e}") from e

        return [
            MemberCartRow(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                selected_weight=item.selected_weight,
                product=_product_out(product) if product is not None else None,
            )
            for item, product in rows
        ]

    def invalidate(self, user_id: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(models.CartItem).where(models.CartItem.user_id == user_id))
            db.commit()
