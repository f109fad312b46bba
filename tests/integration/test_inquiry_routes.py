"""
Integration tests for the inquiries API.
"""
from uuid import uuid4

import pytest


def _as(user_id):
    return {"X-User-Id": str(user_id)}


@pytest.mark.integration
def test_inquiry_workflow(client, make_business):
    business = make_business()
    customer = uuid4()

    created = client.post(
        f"/businesses/{business.id}/inquiries",
        json={
            "inquiry_type": "booking",
            "message": "Are you free this Saturday morning?",
            "preferred_contact": "call",
        },
        headers=_as(customer),
    )
    assert created.status_code == 201
    inquiry_id = created.json()["data"]["id"]
    assert created.json()["data"]["status"] == "pending"

    reply = client.post(
        f"/inquiries/{inquiry_id}/response",
        json={"response": "Yes, 9am works."},
        headers=_as(business.user_id),
    )
    assert reply.status_code == 200
    assert reply.json()["data"]["status"] == "responded"

    closed = client.put(
        f"/inquiries/{inquiry_id}/status", json={"status": "closed"}, headers=_as(business.user_id)
    )
    assert closed.json()["data"]["status"] == "closed"

    backwards = client.put(
        f"/inquiries/{inquiry_id}/status", json={"status": "pending"}, headers=_as(business.user_id)
    )
    assert backwards.status_code == 400
    assert backwards.json()["code"] == "invalid_state"

    mine = client.get("/inquiries/mine", headers=_as(customer)).json()
    assert mine["total"] == 1

    stats = client.get(f"/businesses/{business.id}/inquiries/stats", headers=_as(business.user_id))
    assert stats.json()["data"] == {
        "total": 1,
        "pending": 0,
        "responded": 0,
        "closed": 1,
        "response_rate": 100.0,
    }


@pytest.mark.integration
def test_inbox_is_owner_only(client, make_business):
    business = make_business()
    customer = uuid4()
    client.post(
        f"/businesses/{business.id}/inquiries",
        json={"inquiry_type": "question", "message": "Do you bring your own supplies?"},
        headers=_as(customer),
    )

    assert client.get(f"/businesses/{business.id}/inquiries", headers=_as(customer)).status_code == 403
    assert client.get(
        f"/businesses/{business.id}/inquiries/stats", headers=_as(customer)
    ).status_code == 403

    inbox = client.get(f"/businesses/{business.id}/inquiries", headers=_as(business.user_id))
    assert inbox.json()["total"] == 1


@pytest.mark.integration
def test_inquiry_requires_message(client, make_business):
    business = make_business()

    response = client.post(
        f"/businesses/{business.id}/inquiries",
        json={"inquiry_type": "question", "message": ""},
        headers=_as(uuid4()),
    )

    assert response.status_code == 422
