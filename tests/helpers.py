"""Request helpers shared by the test modules."""

from typing import Optional

from fastapi.testclient import TestClient


BOOKING = {
    "tableNum": 3,
    "start": "2025-06-01T19:00:00",
    "end": "2025-06-01T21:00:00",
    "userName": "Dana",
}
ORDER = {
    "userName": "Dana",
    "items": [
        {"name": "Margherita", "quantity": 2, "price": 11.5},
        {"name": "Lemonade", "quantity": 1, "price": 3.0},
    ],
    "total": 26.0,
    "method": "card",
}
FEEDBACK = {"userName": "Dana", "text": "Great pasta", "foodRating": 5, "serviceRating": 4}


def register(
    client: TestClient,
    email: str,
    name: str,
    account_type: str = "restaurant",
    password: str = "secret123",
):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name, "type": account_type},
    )


def login(client: TestClient, email: str, password: str = "secret123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Account:
    def __init__(self, token: str, user: dict):
        self.token = token
        self.user = user

    @property
    def restaurant_id(self) -> Optional[int]:
        return self.user["restaurantId"]

    @property
    def headers(self) -> dict:
        return auth_header(self.token)


def create_account(client: TestClient, email: str, name: str, account_type: str = "restaurant") -> Account:
    assert register(client, email, name, account_type).status_code == 201
    response = login(client, email)
    assert response.status_code == 200
    body = response.json()
    return Account(body["token"], body["user"])
