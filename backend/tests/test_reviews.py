"""Endpoint tests for reviews and the bootcamp average rating."""

import uuid
from unittest.mock import patch

from sqlalchemy.exc import SQLAlchemyError

from conftest import auth_header, register

BOOTCAMPS = "/api/v1/bootcamps"
REVIEWS = "/api/v1/reviews"


def review_payload(rating=8, title="Learned a ton!"):
    return {
        "title": title,
        "text": "Great bootcamp, the instructors really know their stuff.",
        "rating": rating,
    }


async def add_review(client, token, bootcamp_id, rating=8):
    response = await client.post(
        f"{BOOTCAMPS}/{bootcamp_id}/reviews",
        json=review_payload(rating),
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def average_rating(client, bootcamp_id):
    data = (await client.get(f"{BOOTCAMPS}/{bootcamp_id}")).json()["data"]
    return data.get("averageRating")


class TestAddReview:
    async def test_add_review(self, test_client, user_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"], 8)

        assert review["rating"] == 8
        assert review["bootcamp"] == bootcamp["id"]
        assert await average_rating(test_client, bootcamp["id"]) == 8

    async def test_average_of_several(self, test_client, user_token, bootcamp):
        await add_review(test_client, user_token, bootcamp["id"], 8)
        other = await register(test_client, "Sasha Lee", "sasha@gmail.com")
        await add_review(test_client, other, bootcamp["id"], 5)

        assert await average_rating(test_client, bootcamp["id"]) == 6.5

    async def test_failed_recompute_keeps_review(self, test_client, user_token, bootcamp):
        with patch(
            "devcamper.services.aggregate_service.update", side_effect=SQLAlchemyError("boom")
        ):
            review = await add_review(test_client, user_token, bootcamp["id"], 8)

        response = await test_client.get(f"{REVIEWS}/{review['id']}")
        assert response.status_code == 200
        assert await average_rating(test_client, bootcamp["id"]) is None

    async def test_publisher_cannot_review(self, test_client, publisher_token, bootcamp):
        response = await test_client.post(
            f"{BOOTCAMPS}/{bootcamp['id']}/reviews",
            json=review_payload(),
            headers=auth_header(publisher_token),
        )
        assert response.status_code == 403
        assert response.json()["error"] == (
            "User role publisher is not authorized to access this route"
        )

    async def test_one_review_per_bootcamp(self, test_client, user_token, bootcamp):
        await add_review(test_client, user_token, bootcamp["id"])

        response = await test_client.post(
            f"{BOOTCAMPS}/{bootcamp['id']}/reviews",
            json=review_payload(3),
            headers=auth_header(user_token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Duplicate field value entered"
        assert await average_rating(test_client, bootcamp["id"]) == 8

    async def test_rating_out_of_range(self, test_client, user_token, bootcamp):
        for rating in (0, 11):
            response = await test_client.post(
                f"{BOOTCAMPS}/{bootcamp['id']}/reviews",
                json=review_payload(rating),
                headers=auth_header(user_token),
            )
            assert response.status_code == 400
            assert "rating" in response.json()["error"]

    async def test_unknown_bootcamp(self, test_client, user_token):
        response = await test_client.post(
            f"{BOOTCAMPS}/{uuid.uuid4()}/reviews",
            json=review_payload(),
            headers=auth_header(user_token),
        )
        assert response.status_code == 404


class TestReadReviews:
    async def test_get_populates_bootcamp(self, test_client, user_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"])

        data = (await test_client.get(f"{REVIEWS}/{review['id']}")).json()["data"]
        assert data["bootcamp"]["name"] == bootcamp["name"]

    async def test_listing_filters_by_rating(self, test_client, user_token, bootcamp):
        await add_review(test_client, user_token, bootcamp["id"], 9)
        other = await register(test_client, "Sasha Lee", "sasha@gmail.com")
        await add_review(test_client, other, bootcamp["id"], 2)

        body = (await test_client.get(f"{REVIEWS}?rating[gte]=5")).json()
        assert body["count"] == 1
        assert body["data"][0]["rating"] == 9

    async def test_nested_listing(self, test_client, user_token, bootcamp):
        await add_review(test_client, user_token, bootcamp["id"])

        body = (await test_client.get(f"{BOOTCAMPS}/{bootcamp['id']}/reviews")).json()
        assert body["count"] == 1
        assert body["data"][0]["bootcamp"] == bootcamp["id"]

    async def test_unknown_review(self, test_client):
        response = await test_client.get(f"{REVIEWS}/not-an-id")
        assert response.status_code == 404


class TestUpdateAndDeleteReviews:
    async def test_owner_updates_rating(self, test_client, user_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"], 8)

        response = await test_client.put(
            f"{REVIEWS}/{review['id']}", json={"rating": 4}, headers=auth_header(user_token)
        )
        assert response.status_code == 200
        assert response.json()["data"]["rating"] == 4
        assert await average_rating(test_client, bootcamp["id"]) == 4

    async def test_other_user_cannot_update(self, test_client, user_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"])
        other = await register(test_client, "Sasha Lee", "sasha@gmail.com")

        response = await test_client.put(
            f"{REVIEWS}/{review['id']}", json={"title": "Meh"}, headers=auth_header(other)
        )
        assert response.status_code == 403

    async def test_admin_can_delete(self, test_client, user_token, admin_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"])

        response = await test_client.delete(
            f"{REVIEWS}/{review['id']}", headers=auth_header(admin_token)
        )
        assert response.status_code == 200
        assert await average_rating(test_client, bootcamp["id"]) is None

    async def test_other_user_cannot_delete(self, test_client, user_token, bootcamp):
        review = await add_review(test_client, user_token, bootcamp["id"])
        other = await register(test_client, "Sasha Lee", "sasha@gmail.com")

        response = await test_client.delete(f"{REVIEWS}/{review['id']}", headers=auth_header(other))
        assert response.status_code == 403
