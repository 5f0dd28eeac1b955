"""HTTP-level tests for the booking router."""

from __future__ import annotations

import jwt
import pytest
from fastapi.testclient import TestClient

from sky_booking_api.config import settings
from sky_booking_api.dependencies import get_booking_service
from sky_booking_api.main import create_app


def _auth(user_id: str) -> dict[str, str]:
    token = jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(service):
    app = create_app()
    app.dependency_overrides[get_booking_service] = lambda: service
    return TestClient(app)


def test_requires_authentication(client):
    response = client.get("/api/v1/bookings")

    assert response.status_code == 401


def test_create_and_fetch_booking(client, cache_offer, make_request):
    cache_offer()

    created = client.post("/api/v1/bookings", json=make_request(), headers=_auth("u1"))

    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "CONFIRMED"
    assert body["paymentStatus"] == "AUTHORIZED"
    assert "userId" not in body

    fetched = client.get(f"/api/v1/bookings/{body['bookingId']}", headers=_auth("u1"))
    assert fetched.status_code == 200
    assert fetched.json()["pnr"] == body["pnr"]

    listing = client.get("/api/v1/bookings", headers=_auth("u1"))
    assert [item["bookingId"] for item in listing.json()] == [body["bookingId"]]


def test_price_conflict_maps_to_409(client, provider, cache_offer, make_request):
    cache_offer(grand_total="1000.00")
    provider.repriced_total = "1200.00"

    response = client.post("/api/v1/bookings", json=make_request(), headers=_auth("u1"))

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "CONFLICT"
    assert body["details"]["original_price"] == 1000.0
    assert body["details"]["current_price"] == 1200.0


def test_invalid_body_maps_to_400(client):
    response = client.post("/api/v1/bookings", json={"offerId": "x"}, headers=_auth("u1"))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION"


def test_foreign_booking_maps_to_403(client, cache_offer, make_request):
    cache_offer()
    created = client.post("/api/v1/bookings", json=make_request(), headers=_auth("u1"))
    booking_id = created.json()["bookingId"]

    response = client.get(f"/api/v1/bookings/{booking_id}/status", headers=_auth("u2"))

    assert response.status_code == 403


def test_cancel_status_invoice_and_resend(client, cache_offer, make_request):
    cache_offer()
    headers = _auth("u1")
    booking_id = client.post(
        "/api/v1/bookings", json=make_request(), headers=headers
    ).json()["bookingId"]

    cancelled = client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        json={"reason": "Trip cancelled", "requestRefund": True},
        headers=headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert cancelled.json()["paymentStatus"] == "REFUNDED"

    again = client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        json={"reason": "Again"},
        headers=headers,
    )
    assert again.status_code == 400

    status = client.get(f"/api/v1/bookings/{booking_id}/status", headers=headers)
    assert status.json()["status"] == "CANCELLED"

    invoice = client.get(f"/api/v1/bookings/{booking_id}/invoice", headers=headers)
    assert invoice.json()["invoiceNumber"] == f"INV-{booking_id[:8].upper()}"

    resent = client.post(
        f"/api/v1/bookings/{booking_id}/resend-confirmation", headers=headers
    )
    assert resent.json() == {
        "bookingId": booking_id,
        "email": "jane.doe@skybooking.io",
        "message": "Booking confirmation email has been resent",
    }


def test_unknown_booking_maps_to_404(client):
    response = client.get("/api/v1/bookings/nope", headers=_auth("u1"))

    assert response.status_code == 404
    assert response.json()["detail"] == "Booking not found"
