"""Tests for the private ``/users`` endpoints.

Requests go through the full stack against an in-memory SQLite store.
"""

from __future__ import annotations

import pytest

# ---------------------------------------------------------------------------
# Shared payloads
# ---------------------------------------------------------------------------

ALICE = {
    "payId": "alice$xpring.money",
    "addresses": [
        {
            "paymentNetwork": "XRPL",
            "environment": "TESTNET",
            "details": {"address": "TVacixsWrqyWCr98eTYP7FSzE9NwupESR4TrnijN7fccNiS"},
        },
        {
            "paymentNetwork": "ACH",
            "details": {"accountNumber": "000123456789", "routingNumber": "123456789"},
        },
    ],
}

BOB = {
    "payId": "bob$xpring.money",
    "addresses": [
        {
            "paymentNetwork": "XRPL",
            "environment": "TESTNET",
            "details": {"address": "XVYUQ3SdUcVnaTNVanDYo1NamrUukPUPeoGMnmvkEExbtrj"},
        },
    ],
}

NEW_XRPL = [
    {
        "paymentNetwork": "XRPL",
        "environment": "TESTNET",
        "details": {"address": "TVZG1yJZf6QH85fPPRX1jswRYTZFg3H4um3Muu3S27SdJkr"},
    },
]

CONFLICT_ERROR = {
    "statusCode": 409,
    "error": "Conflict",
    "message": "There already exists a user with the provided PayID",
}


@pytest.fixture
def seeded_client(test_client):
    """Client whose store already holds alice and bob."""
    for body in (ALICE, BOB):
        assert test_client.post("/users", json=body).status_code == 201
    return test_client


# ---------------------------------------------------------------------------
# GET /users/{payId}
# ---------------------------------------------------------------------------


class TestGetUser:
    def test_known_user(self, seeded_client) -> None:
        resp = seeded_client.get("/users/alice$xpring.money")
        assert resp.status_code == 200
        assert "application/json" in resp.headers["content-type"]
        assert resp.json() == ALICE

    def test_environment_omitted_when_absent(self, seeded_client) -> None:
        addresses = seeded_client.get("/users/alice$xpring.money").json()["addresses"]
        assert "environment" not in addresses[1]

    def test_lookup_is_case_insensitive(self, seeded_client) -> None:
        resp = seeded_client.get("/users/ALICE$Xpring.Money")
        assert resp.status_code == 200
        assert resp.json()["payId"] == "alice$xpring.money"

    def test_unknown_user(self, seeded_client) -> None:
        resp = seeded_client.get("/users/johndoe$xpring.money")
        assert resp.status_code == 404
        assert "application/json" in resp.headers["content-type"]
        assert resp.json() == {
            "statusCode": 404,
            "error": "Not Found",
            "message": "No information could be found for the PayID johndoe$xpring.money.",
        }

    def test_malformed_pay_id(self, test_client) -> None:
        resp = test_client.get("/users/alice.xpring.money")
        assert resp.status_code == 400
        assert resp.json()["message"] == 'Bad input. PayIDs must contain a "$"'


# ---------------------------------------------------------------------------
# POST /users
# ---------------------------------------------------------------------------


class TestCreateUser:
    def test_created(self, test_client) -> None:
        body = {"payId": "johndoe$xpring.money", "addresses": NEW_XRPL}
        resp = test_client.post("/users", json=body)
        assert resp.status_code == 201
        assert "text/plain" in resp.headers["content-type"]
        assert resp.headers["location"] == "/users/johndoe$xpring.money"
        assert resp.content == b""
        assert test_client.get("/users/johndoe$xpring.money").json() == body

    def test_created_without_environment(self, test_client) -> None:
        body = {
            "payId": "janedoe$xpring.money",
            "addresses": [
                {
                    "paymentNetwork": "ACH",
                    "details": {"accountNumber": "000666666", "routingNumber": "123456789"},
                },
            ],
        }
        resp = test_client.post("/users", json=body)
        assert resp.status_code == 201
        assert resp.headers["location"] == "/users/janedoe$xpring.money"

    def test_created_with_period(self, test_client) -> None:
        body = {"payId": "alice.smith$xpring.money", "addresses": NEW_XRPL}
        resp = test_client.post("/users", json=body)
        assert resp.status_code == 201
        assert "text/plain" in resp.headers["content-type"]

    def test_location_uses_normalized_pay_id(self, test_client) -> None:
        resp = test_client.post("/users", json={"payId": "Carol$Example.com", "addresses": []})
        assert resp.status_code == 201
        assert resp.headers["location"] == "/users/carol$example.com"

    def test_conflict(self, seeded_client) -> None:
        body = {"payId": "alice$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.post("/users", json=body)
        assert resp.status_code == 409
        assert resp.json() == CONFLICT_ERROR

    def test_conflict_ignores_case(self, seeded_client) -> None:
        resp = seeded_client.post("/users", json={"payId": "ALICE$xpring.money", "addresses": []})
        assert resp.status_code == 409

    def test_malformed_pay_id(self, test_client) -> None:
        body = {"payId": "alice$bob$xpring.money", "addresses": []}
        resp = test_client.post("/users", json=body)
        assert resp.status_code == 400
        assert resp.json() == {
            "statusCode": 400,
            "error": "Bad Request",
            "message": 'Bad input. PayIDs must contain only one "$"',
        }

    def test_empty_pay_id(self, test_client) -> None:
        resp = test_client.post("/users", json={"payId": "", "addresses": []})
        assert resp.status_code == 400
        assert resp.json()["message"] == 'Bad input. PayIDs must contain a "$"'

    def test_long_pay_id_with_two_delimiters(self, test_client) -> None:
        resp = test_client.post("/users", json={"payId": "a$b$" + "x" * 250, "addresses": []})
        assert resp.status_code == 400
        assert resp.json()["message"] == 'Bad input. PayIDs must contain only one "$"'

    def test_pay_id_too_long(self, test_client) -> None:
        resp = test_client.post("/users", json={"payId": "a$" + "x" * 250, "addresses": []})
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("Bad input.")
        assert test_client.get("/users/a$" + "x" * 250).status_code == 404

    def test_duplicate_address_key(self, test_client) -> None:
        body = {"payId": "dup$xpring.money", "addresses": NEW_XRPL + NEW_XRPL}
        resp = test_client.post("/users", json=body)
        assert resp.status_code == 400
        assert "XRPL" in resp.json()["message"]
        assert test_client.get("/users/dup$xpring.money").status_code == 404

    def test_missing_fields(self, test_client) -> None:
        resp = test_client.post("/users", json={"payId": "nobody$xpring.money"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Bad Request"
        assert data["message"].startswith("Bad input.")
        assert "addresses" in data["message"]


# ---------------------------------------------------------------------------
# PUT /users/{payId}
# ---------------------------------------------------------------------------


class TestUpdateUser:
    def test_update_addresses(self, seeded_client) -> None:
        body = {"payId": "alice$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice$xpring.money", json=body)
        assert resp.status_code == 200
        assert "application/json" in resp.headers["content-type"]
        assert resp.json() == body
        assert "location" not in resp.headers

    def test_rename(self, seeded_client) -> None:
        body = {"payId": "charlie$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice$xpring.money", json=body)
        assert resp.status_code == 200
        assert resp.json() == body
        assert seeded_client.get("/users/alice$xpring.money").status_code == 404
        assert seeded_client.get("/users/charlie$xpring.money").json() == body

    def test_create_through_put(self, test_client) -> None:
        body = {"payId": "johndoe$xpring.money", "addresses": NEW_XRPL}
        resp = test_client.put("/users/johndoe$xpring.money", json=body)
        assert resp.status_code == 201
        assert "application/json" in resp.headers["content-type"]
        assert resp.headers["location"] == "/users/johndoe$xpring.money"
        assert resp.json() == body

    def test_create_through_put_uses_body_pay_id(self, test_client) -> None:
        body = {"payId": "janedoe$xpring.money", "addresses": NEW_XRPL}
        resp = test_client.put("/users/ghost$xpring.money", json=body)
        assert resp.status_code == 201
        assert resp.headers["location"] == "/users/janedoe$xpring.money"
        assert test_client.get("/users/ghost$xpring.money").status_code == 404

    def test_malformed_target(self, seeded_client) -> None:
        body = {"payId": "alice$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice.xpring.money", json=body)
        assert resp.status_code == 400
        assert resp.json() == {
            "statusCode": 400,
            "error": "Bad Request",
            "message": 'Bad input. PayIDs must contain a "$"',
        }

    def test_malformed_target_multiple_delimiters(self, seeded_client) -> None:
        body = {"payId": "alice$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice$bob$xpring.money", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == 'Bad input. PayIDs must contain only one "$"'

    def test_malformed_new_pay_id(self, seeded_client) -> None:
        body = {"payId": "alice$bob$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice$xpring.money", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == 'Bad input. PayIDs must contain only one "$"'
        assert seeded_client.get("/users/alice$xpring.money").json() == ALICE

    def test_rename_onto_existing(self, seeded_client) -> None:
        body = {"payId": "bob$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/alice$xpring.money", json=body)
        assert resp.status_code == 409
        assert resp.json() == CONFLICT_ERROR
        assert seeded_client.get("/users/alice$xpring.money").json() == ALICE
        assert seeded_client.get("/users/bob$xpring.money").json() == BOB

    def test_create_through_put_onto_existing(self, seeded_client) -> None:
        body = {"payId": "bob$xpring.money", "addresses": NEW_XRPL}
        resp = seeded_client.put("/users/janedoe$xpring.money", json=body)
        assert resp.status_code == 409
        assert resp.json() == CONFLICT_ERROR
        assert seeded_client.get("/users/bob$xpring.money").json() == BOB


# ---------------------------------------------------------------------------
# DELETE /users/{payId}
# ---------------------------------------------------------------------------


class TestDeleteUser:
    def test_delete_then_get(self, seeded_client) -> None:
        resp = seeded_client.delete("/users/alice$xpring.money")
        assert resp.status_code == 204
        assert resp.content == b""

        resp = seeded_client.get("/users/alice$xpring.money")
        assert resp.status_code == 404
        assert resp.json()["message"] == (
            "No information could be found for the PayID alice$xpring.money."
        )

    def test_delete_unknown(self, test_client) -> None:
        resp = test_client.delete("/users/johndoe$xpring.money")
        assert resp.status_code == 204

    def test_delete_malformed(self, test_client) -> None:
        resp = test_client.delete("/users/alice.xpring.money")
        assert resp.status_code == 400

    def test_pay_id_reusable_after_delete(self, seeded_client) -> None:
        seeded_client.delete("/users/bob$xpring.money")
        resp = seeded_client.post("/users", json=BOB)
        assert resp.status_code == 201
