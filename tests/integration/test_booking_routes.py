"""
Integration tests for the bookings API: full lifecycle through HTTP.
"""
from uuid import uuid4

import pytest

from src.models import BookingStatus, BusinessProfile


def _as(user_id):
    return {"X-User-Id": str(user_id)}


@pytest.mark.integration
def test_booking_lifecycle_unlocks_review(client, db, make_business, make_service):
    business = make_business()
    offering = make_service(business)
    customer = uuid4()

    created = client.post(
        "/bookings",
        json={
            "business_id": str(business.id),
            "service_id": str(offering.id),
            "scheduled_date": "2026-11-02",
            "scheduled_time": "09:30:00",
            "address": "12 Admiralty Way, Lekki",
        },
        headers=_as(customer),
    )
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    booking_id = body["data"]["id"]
    assert body["data"]["status"] == "pending"
    assert body["data"]["service_name"] == "Deep cleaning"
    assert body["data"]["price"] == 15000.0

    for next_status in ("confirmed", "in_progress", "completed"):
        response = client.put(
            f"/bookings/{booking_id}/status",
            json={"status": next_status},
            headers=_as(business.user_id),
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == next_status

    reviewable = client.get("/bookings/reviewable", headers=_as(customer)).json()["data"]
    assert [b["id"] for b in reviewable] == [booking_id]
    assert reviewable[0]["can_review"] is True

    review = client.post(
        f"/businesses/{business.id}/reviews",
        json={"rating": 5, "booking_id": booking_id},
        headers=_as(customer),
    )
    assert review.status_code == 201
    assert client.get("/bookings/reviewable", headers=_as(customer)).json()["data"] == []

    db.expire_all()
    assert db.get(BusinessProfile, business.id).completed_jobs == 1


@pytest.mark.integration
def test_create_booking_not_payout_ready(client, make_business):
    business = make_business(payout_ready=False)

    response = client.post("/bookings", json={"business_id": str(business.id)}, headers=_as(uuid4()))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "invalid_state"
    assert body["details"]["reason"] == "business_not_payout_ready"


@pytest.mark.integration
def test_create_booking_unknown_business(client):
    response = client.post("/bookings", json={"business_id": str(uuid4())}, headers=_as(uuid4()))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.integration
def test_third_party_cannot_touch_booking(client, make_business, make_booking):
    business = make_business()
    booking = make_booking(business)
    stranger = uuid4()

    assert client.get(f"/bookings/{booking.id}", headers=_as(stranger)).status_code == 403
    assert client.put(
        f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=_as(stranger)
    ).status_code == 403
    assert client.delete(f"/bookings/{booking.id}", headers=_as(stranger)).status_code == 403


@pytest.mark.integration
def test_illegal_transition(client, make_business, make_booking):
    business = make_business()
    booking = make_booking(business, status=BookingStatus.COMPLETED)

    response = client.put(
        f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=_as(business.user_id)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_state"


@pytest.mark.integration
def test_unknown_status_value_is_validation_error(client, make_business, make_booking):
    business = make_business()
    booking = make_booking(business)

    response = client.put(
        f"/bookings/{booking.id}/status", json={"status": "archived"}, headers=_as(business.user_id)
    )

    assert response.status_code == 422
    assert response.json()["code"] == "validation"


@pytest.mark.integration
def test_cancel_via_delete(client, make_business, make_booking):
    business = make_business()
    booking = make_booking(business)

    response = client.request(
        "DELETE", f"/bookings/{booking.id}", json={"reason": "Rescheduling"}, headers=_as(booking.user_id)
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Rescheduling"

    again = client.delete(f"/bookings/{booking.id}", headers=_as(booking.user_id))
    assert again.status_code == 400
    assert again.json()["error"] == "Cannot cancel a completed or already cancelled booking"


@pytest.mark.integration
def test_list_bookings_pagination(client, make_business, make_booking):
    business = make_business()
    customer = uuid4()
    for _ in range(3):
        make_booking(business, customer)

    body = client.get("/bookings?page=1&limit=2", headers=_as(customer)).json()

    assert len(body["data"]) == 2
    assert {k: body[k] for k in ("total", "page", "limit", "total_pages")} == {
        "total": 3, "page": 1, "limit": 2, "total_pages": 2
    }
    assert "pagination" not in body


@pytest.mark.integration
def test_business_bookings_owner_only(client, make_business, make_booking):
    business = make_business()
    make_booking(business, status=BookingStatus.CONFIRMED)
    make_booking(business)

    owner_view = client.get(
        f"/businesses/{business.id}/bookings?status=confirmed", headers=_as(business.user_id)
    )
    assert owner_view.status_code == 200
    assert owner_view.json()["total"] == 1

    assert client.get(f"/businesses/{business.id}/bookings", headers=_as(uuid4())).status_code == 403
