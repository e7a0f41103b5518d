from __future__ import annotations

from uuid import uuid4

from packages.shared.schemas.order_v1 import OrderCreationResponseV1, OrderPayloadV1


class MockOrderService:
    """Accepts every order and remembers it; also answers order-history queries."""

    def __init__(self) -> None:
        self.orders: dict[str, OrderPayloadV1] = {}

    def create_order(self, payload: OrderPayloadV1) -> OrderCreationResponseV1:
        order_id = f"ord_{uuid4().hex[:10]}"
        self.orders[order_id] = payload
        return OrderCreationResponseV1(order_id=order_id)

    def count_orders(self, user_id: str) -> int:
        return sum(1 for payload in self.orders.values() if payload.user_id == user_id)
