from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _fresh_process_state(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAMEDAY_BACKEND", "mock")

    from services.checkout.app.services.factory import reset_mock_ports
    from services.checkout.app.services.session_store import store

    reset_mock_ports()
    store.clear()
