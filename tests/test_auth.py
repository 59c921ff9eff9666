"""Registration and login."""

from helpers import login, register


def test_register_user_account(client):
    response = register(client, "alice@mail.com", "Alice", account_type="user")

    assert response.status_code == 201
    assert response.json() == {"message": "User registered successfully"}
    # Plain user accounts do not get a restaurant
    assert client.get("/api/restaurants").json() == []


def test_register_restaurant_creates_restaurant(client):
    response = register(client, "chef@bistro.com", "Bistro & Co")
    assert response.status_code == 201

    restaurants = client.get("/api/restaurants").json()
    assert len(restaurants) == 1
    restaurant = restaurants[0]
    assert restaurant["name"] == "Bistro & Co"
    assert restaurant["email"] == "chef@bistro.com"
    assert restaurant["logo"] == (
        "https://ui-avatars.com/api/?name=Bistro%20%26%20Co&background=101827&color=fff"
    )
    assert restaurant["menu"] == []
    assert restaurant["tables"] == []


def test_duplicate_email_is_rejected_and_creates_no_second_restaurant(client):
    assert register(client, "chef@bistro.com", "Bistro").status_code == 201

    response = register(client, "chef@bistro.com", "Another Bistro")

    assert response.status_code == 400
    assert response.json() == {"message": "User already exists"}
    assert len(client.get("/api/restaurants").json()) == 1


def test_duplicate_email_ignores_case(client):
    assert register(client, "chef@bistro.com", "Bistro", account_type="user").status_code == 201

    response = register(client, "Chef@Bistro.com", "Bistro", account_type="user")

    assert response.status_code == 400


def test_register_validation_reports_fields(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "123", "name": "   ", "type": "admin"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert fields == {"email", "password", "name", "type"}


def test_register_missing_fields(client):
    response = client.post("/api/auth/register", json={"email": "a@mail.com"})

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"password", "name", "type"} <= fields


def test_login_returns_token_and_public_user(client):
    register(client, "chef@bistro.com", "Bistro")

    response = login(client, "chef@bistro.com")

    assert response.status_code == 200
    body = response.json()
    assert isinstance(body["token"], str) and body["token"]
    user = body["user"]
    assert user["email"] == "chef@bistro.com"
    assert user["name"] == "Bistro"
    assert user["type"] == "restaurant"
    assert isinstance(user["restaurantId"], int)
    assert "password" not in user
    assert "passwordHash" not in user


def test_login_normalizes_email(client):
    register(client, "chef@bistro.com", "Bistro")

    assert login(client, "Chef@Bistro.com").status_code == 200


def test_login_failures_are_indistinguishable(client):
    register(client, "chef@bistro.com", "Bistro")

    wrong_password = login(client, "chef@bistro.com", password="wrong-password")
    unknown_email = login(client, "nobody@bistro.com", password="wrong-password")

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid credentials"}


def test_user_account_token_has_no_restaurant(client, customer):
    assert customer.user["type"] == "user"
    assert customer.restaurant_id is None
