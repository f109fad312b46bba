"""
Integration tests for the reviews API.
"""
from uuid import uuid4

import pytest


def _as(user_id):
    return {"X-User-Id": str(user_id)}


@pytest.mark.integration
def test_review_stats_endpoint(client, make_business):
    business = make_business()
    for score in (5, 4, 5):
        response = client.post(
            f"/businesses/{business.id}/reviews",
            json={
                "rating": score,
                "service_quality": score,
                "professionalism": score,
                "value_for_money": score,
            },
            headers=_as(uuid4()),
        )
        assert response.status_code == 201

    stats = client.get(f"/businesses/{business.id}/reviews/stats").json()["data"]

    assert stats["average_rating"] == 4.67
    assert stats["total_reviews"] == 3
    assert stats["rating_distribution"] == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 2}
    assert stats["average_value_for_money"] == 4.67


@pytest.mark.integration
def test_duplicate_and_self_review(client, make_business):
    business = make_business()
    customer = uuid4()
    url = f"/businesses/{business.id}/reviews"

    assert client.post(url, json={"rating": 4}, headers=_as(customer)).status_code == 201

    duplicate = client.post(url, json={"rating": 1}, headers=_as(customer))
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "invalid_state"

    own = client.post(url, json={"rating": 5}, headers=_as(business.user_id))
    assert own.status_code == 403
    assert own.json()["code"] == "forbidden"


@pytest.mark.integration
def test_rating_out_of_range(client, make_business):
    business = make_business()

    response = client.post(
        f"/businesses/{business.id}/reviews", json={"rating": 6}, headers=_as(uuid4())
    )

    assert response.status_code == 422


@pytest.mark.integration
def test_update_respond_delete(client, make_business):
    business = make_business()
    author = uuid4()
    created = client.post(
        f"/businesses/{business.id}/reviews",
        json={"rating": 2, "review_text": "Late by two hours"},
        headers=_as(author),
    ).json()["data"]
    review_id = created["id"]

    updated = client.put(
        f"/reviews/{review_id}",
        json={"rating": 4, "review_text": "Late, but the work was excellent"},
        headers=_as(author),
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["rating"] == 4

    reply = client.post(
        f"/reviews/{review_id}/response",
        json={"response": "Sorry about the delay, thanks for your patience."},
        headers=_as(business.user_id),
    )
    assert reply.status_code == 200
    assert reply.json()["data"]["responded_at"] is not None

    assert client.post(
        f"/reviews/{review_id}/response", json={"response": "Me again"}, headers=_as(author)
    ).status_code == 403

    deleted = client.delete(f"/reviews/{review_id}", headers=_as(author))
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True

    stats = client.get(f"/businesses/{business.id}/reviews/stats").json()["data"]
    assert stats["total_reviews"] == 0
    assert stats["average_rating"] == 0.0


@pytest.mark.integration
def test_list_reviews(client, make_business, make_review):
    business = make_business()
    make_review(business, rating=5)
    make_review(business, rating=3)

    body = client.get(f"/businesses/{business.id}/reviews?rating=3").json()

    assert body["total"] == 1
    assert body["data"][0]["rating"] == 3


@pytest.mark.integration
def test_reviews_for_unknown_business(client):
    assert client.get(f"/businesses/{uuid4()}/reviews/stats").status_code == 404
