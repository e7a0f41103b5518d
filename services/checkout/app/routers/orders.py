from __future__ import annotations

from fastapi import APIRouter, HTTPException

from services.checkout.app.models.api import EffectsOut
from services.checkout.app.services.factory import get_checkout_ports

router = APIRouter()


@router.get("/v1/orders/{order_id}/effects", response_model=EffectsOut)
def list_order_effects(order_id: str) -> EffectsOut:
    """Post-commit bookkeeping recorded for an order, oldest first."""

    try:
        ports = get_checkout_ports()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    outcomes = ports.recorder.list_for_order(order_id)
    if not outcomes:
        raise HTTPException(status_code=404, detail="No post-commit records for this order")

    return EffectsOut.from_outcomes(order_id, outcomes)
