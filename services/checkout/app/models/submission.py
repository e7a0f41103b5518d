from __future__ import annotations

from enum import Enum
from typing import Any

from packages.shared.schemas.checkout_events_v1 import EffectNameV1, EffectStatusV1
from pydantic import BaseModel, Field


class SubmissionPhase(str, Enum):
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class SubmissionState(BaseModel):
    phase: SubmissionPhase = SubmissionPhase.IDLE
    order_id: str | None = None
    error: str | None = None
    # Set when the failure came from the validation gate.
    error_code: str | None = None

    @property
    def can_submit(self) -> bool:
        return self.phase in {SubmissionPhase.IDLE, SubmissionPhase.FAILED}


class EffectOutcome(BaseModel):
    effect: EffectNameV1
    status: EffectStatusV1
    error: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class SubmissionResult(BaseModel):
    order_id: str
    effects: list[EffectOutcome] = Field(default_factory=list)

    @property
    def failed_effects(self) -> list[EffectOutcome]:
        return [e for e in self.effects if e.status == EffectStatusV1.FAILED]
