from __future__ import annotations

from typing import Protocol

from services.checkout.app.models.submission import EffectOutcome


class EffectRecorder(Protocol):
    def record(self, order_id: str, user_id: str | None, outcome: EffectOutcome) -> None: ...

    def list_for_order(self, order_id: str) -> list[EffectOutcome]: ...


class InMemoryEffectLog:
    def __init__(self) -> None:
        self._outcomes: dict[str, list[EffectOutcome]] = {}

    def record(self, order_id: str, user_id: str | None, outcome: EffectOutcome) -> None:
        del user_id
        self._outcomes.setdefault(order_id, []).append(outcome)

    def list_for_order(self, order_id: str) -> list[EffectOutcome]:
        return list(self._outcomes.get(order_id, []))
