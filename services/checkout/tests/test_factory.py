from __future__ import annotations

import pytest
from services.checkout.app.services.cart_mock import InMemoryCatalog
from services.checkout.app.services.factory import get_checkout_ports


def test_defaults_to_mock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SAMEDAY_BACKEND", raising=False)

    ports = get_checkout_ports()

    assert isinstance(ports.catalog, InMemoryCatalog)
    assert get_checkout_ports() is ports


def test_sql_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAMEDAY_BACKEND", "sql")

    from services.checkout.app.services.cart_sql import SqlCatalog
    from services.checkout.app.services.order_sql import SqlOrderService

    ports = get_checkout_ports()

    assert isinstance(ports.catalog, SqlCatalog)
    assert isinstance(ports.orders, SqlOrderService)
    assert ports.order_history is ports.orders


def test_unknown_backend_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAMEDAY_BACKEND", "redis")

    with pytest.raises(ValueError, match="Unknown SAMEDAY_BACKEND"):
        get_checkout_ports()
