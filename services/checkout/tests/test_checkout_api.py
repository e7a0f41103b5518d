from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from packages.shared.schemas.order_v1 import OrderCreationResponseV1, OrderPayloadV1
from services.checkout.app.main import app
from services.checkout.app.services.factory import get_checkout_ports

client = TestClient(app)

READY = {
    "delivery": {"address": "1 Main St", "borough": "brooklyn"},
    "legal": {"age_confirmed": True, "legal_confirmed": True, "terms_confirmed": True},
    "guest": {"name": "Ada", "phone": "555-0100", "email": "ada@example.com"},
}


def _today() -> date:
    return datetime.now(ZoneInfo("America/New_York")).date()


def _open_guest_session(**extra: object) -> str:
    body = {"guest_cart": [{"product_id": "prod-gummies", "quantity": 2}], **extra}
    response = client.post("/v1/checkout/sessions", json=body)
    assert response.status_code == 200
    return response.json()["session_id"]


def test_health() -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_unknown_session_is_404() -> None:
    response = client.get("/v1/checkout/sessions/missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "Checkout session not found"


def test_guest_quote() -> None:
    session_id = _open_guest_session()
    client.patch(f"/v1/checkout/sessions/{session_id}", json={"delivery": READY["delivery"]})

    response = client.get(f"/v1/checkout/sessions/{session_id}/quote")

    assert response.status_code == 200
    data = response.json()
    assert data["priced"]["delivery_fee"] == 5.5
    assert data["priced"]["total"] == pytest.approx(45.5)
    assert data["priced"]["membership_discount"]["kind"] == "none"
    assert data["display"]["total"] == "$45.50"
    assert [i["product_id"] for i in data["line_items"]] == ["prod-gummies"]


def test_patch_rejects_unknown_borough() -> None:
    session_id = _open_guest_session()

    response = client.patch(
        f"/v1/checkout/sessions/{session_id}", json={"delivery": {"borough": "bronx"}}
    )

    assert response.status_code == 422


def test_coupon_endpoints() -> None:
    session_id = _open_guest_session()

    applied = client.post(f"/v1/checkout/sessions/{session_id}/coupon", json={"code": "save10"})
    assert applied.status_code == 200
    assert applied.json()["discount"] == pytest.approx(4.0)

    missing = client.post(f"/v1/checkout/sessions/{session_id}/coupon", json={"code": "NOPE"})
    assert missing.status_code == 404

    removed = client.delete(f"/v1/checkout/sessions/{session_id}/coupon")
    assert removed.status_code == 200
    assert removed.json()["coupon"] is None


def test_coupon_below_minimum_is_422() -> None:
    session_id = client.post(
        "/v1/checkout/sessions",
        json={"guest_cart": [{"product_id": "prod-gummies", "quantity": 1}]},
    ).json()["session_id"]

    response = client.post(f"/v1/checkout/sessions/{session_id}/coupon", json={"code": "FIVEOFF"})

    assert response.status_code == 422
    assert "Minimum purchase" in response.json()["detail"]


def test_submit_reports_first_validation_error() -> None:
    session_id = _open_guest_session()

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "code": "MISSING_ADDRESS",
        "message": "Please enter a delivery address and select borough",
        "redirect": None,
    }
    state = client.get(f"/v1/checkout/sessions/{session_id}").json()["state"]
    assert state["phase"] == "FAILED"


def test_empty_cart_submit_redirects() -> None:
    session_id = client.post("/v1/checkout/sessions", json={}).json()["session_id"]

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 422
    assert response.json()["detail"]["redirect"] == "/"


def test_economy_date_out_of_window_is_rejected() -> None:
    session_id = _open_guest_session()
    client.patch(
        f"/v1/checkout/sessions/{session_id}",
        json={
            **READY,
            "tier": "economy",
            "scheduled_date": (_today() + timedelta(days=10)).isoformat(),
            "time_slot": "09:00-12:00",
        },
    )

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_SCHEDULE"
    assert get_checkout_ports().orders.orders == {}


def test_guest_submit_places_order_and_records_effects() -> None:
    session_id = _open_guest_session()
    client.patch(f"/v1/checkout/sessions/{session_id}", json=READY)

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 200
    data = response.json()
    order_id = data["order_id"]
    assert data["state"]["phase"] == "SUCCEEDED"
    assert data["redirect"] == f"/order-confirmation?orderId={order_id}"

    payload = get_checkout_ports().orders.orders[order_id]
    assert payload.customer_email == "ada@example.com"
    assert payload.total_amount == pytest.approx(45.5)

    effects = client.get(f"/v1/orders/{order_id}/effects")
    assert effects.status_code == 200
    statuses = {e["effect"]: e["status"] for e in effects.json()["effects"]}
    assert statuses == {
        "mark_welcome_discount_used": "SKIPPED",
        "redeem_coupon": "SKIPPED",
        "clear_cart": "DONE",
    }

    again = client.post(f"/v1/checkout/sessions/{session_id}/submit")
    assert again.status_code == 409

    quote = client.get(f"/v1/checkout/sessions/{session_id}/quote").json()
    assert quote["line_items"] == []


def test_member_submit_marks_welcome_discount_used() -> None:
    from services.checkout.app.models.checkout import WelcomeDiscount

    ports = get_checkout_ports()
    ports.member_carts.add_item("u-42", "prod-gummies", 4)
    ports.welcome_discounts.add(
        WelcomeDiscount(
            id="wd-42",
            user_id="u-42",
            discount_percentage=10,
            expires_at=datetime.now(ZoneInfo("UTC")) + timedelta(days=7),
        )
    )

    session_id = client.post("/v1/checkout/sessions", json={"user_id": "u-42"}).json()["session_id"]
    client.patch(
        f"/v1/checkout/sessions/{session_id}",
        json={**READY, "delivery": {"address": "1 Main St", "borough": "queens"}},
    )

    quote = client.get(f"/v1/checkout/sessions/{session_id}/quote").json()
    assert quote["priced"]["membership_discount"]["kind"] == "welcome"
    assert quote["priced"]["total"] == pytest.approx(77.0)

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 200
    assert ports.welcome_discounts.get("wd-42").used is True
    assert ports.member_carts.fetch_rows("u-42") == []


def test_order_service_failure_is_502(monkeypatch: pytest.MonkeyPatch) -> None:
    def _reject(payload: OrderPayloadV1) -> OrderCreationResponseV1:
        del payload
        return OrderCreationResponseV1(error="We are not delivering right now")

    monkeypatch.setattr(get_checkout_ports().orders, "create_order", _reject)
    session_id = _open_guest_session()
    client.patch(f"/v1/checkout/sessions/{session_id}", json=READY)

    response = client.post(f"/v1/checkout/sessions/{session_id}/submit")

    assert response.status_code == 502
    assert response.json()["detail"] == "We are not delivering right now"
    session = client.get(f"/v1/checkout/sessions/{session_id}").json()
    assert session["state"]["phase"] == "FAILED"
    assert session["can_submit"] is True
    quote = client.get(f"/v1/checkout/sessions/{session_id}/quote").json()
    assert len(quote["line_items"]) == 1


def test_guest_identity_is_restored_for_device(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAMEDAY_GUEST_CACHE_DIR", str(tmp_path))

    first = _open_guest_session(device_id="phone-1")
    client.patch(f"/v1/checkout/sessions/{first}", json={"guest": READY["guest"]})

    second = client.post("/v1/checkout/sessions", json={"device_id": "phone-1"}).json()

    assert second["form"]["guest"] == READY["guest"]


def test_slots() -> None:
    data = client.get("/v1/checkout/slots").json()

    assert len(data["dates"]) == 8
    assert data["dates"][0] == _today().isoformat()
    assert [s["label"] for s in data["slots"]] == ["Morning", "Lunch", "Afternoon", "Evening"]


def test_unknown_backend_is_500(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAMEDAY_BACKEND", "redis")

    response = client.post("/v1/checkout/sessions", json={})

    assert response.status_code == 500


def test_effects_for_unknown_order_is_404() -> None:
    assert client.get("/v1/orders/ord_missing/effects").status_code == 404
