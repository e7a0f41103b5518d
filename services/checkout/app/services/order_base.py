from __future__ import annotations

from typing import Protocol

from packages.shared.schemas.order_v1 import OrderCreationResponseV1, OrderPayloadV1


class OrderServiceError(Exception):
    """Base class for order-creation service errors (transport or service-reported)."""


class OrderService(Protocol):
    """Single request/response call that creates the authoritative order.

    Implementations either return a response carrying an order id or an error
    message, or raise OrderServiceError for transport failures.
    """

    def create_order(self, payload: OrderPayloadV1) -> OrderCreationResponseV1: ...


class OrderHistory(Protocol):
    def count_orders(self, user_id: str) -> int: ...
