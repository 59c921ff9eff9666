"""Restaurant reads and the six child collections."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import BOOKING, FEEDBACK, ORDER, auth_header


def test_liveness(client):
    response = client.get("/api/test")

    assert response.status_code == 200
    body = response.json()
    assert body["database"] == "connected"
    assert body["port"] == 5500
    assert "timestamp" in body


def test_unknown_restaurant_is_404(client):
    response = client.get("/api/restaurants/9999")

    assert response.status_code == 404
    assert response.json() == {"message": "Restaurant not found"}


def test_non_numeric_restaurant_id_is_validation_error(client):
    response = client.get("/api/restaurants/abc")

    assert response.status_code == 400


# =============================================================================
# MENU
# =============================================================================

def test_owner_creates_menu_item(client, owner):
    url = f"/api/restaurants/{owner.restaurant_id}/menu"
    response = client.post(
        url,
        json={"name": "Margherita", "price": 11.5, "img": "https://img.example.com/m.png"},
        headers=owner.headers,
    )

    assert response.status_code == 201
    item = response.json()
    assert item["name"] == "Margherita"
    assert item["price"] == 11.5
    assert item["img"] == "https://img.example.com/m.png"
    assert item["restaurantId"] == owner.restaurant_id
    assert isinstance(item["id"], int)

    listed = client.get(url).json()
    assert [i["id"] for i in listed] == [item["id"]]


def test_menu_requires_token(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/menu",
        json={"name": "Margherita", "price": 11.5},
    )

    assert response.status_code == 401
    assert response.json() == {"message": "Access token required"}


def test_menu_rejects_invalid_token(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/menu",
        json={"name": "Margherita", "price": 11.5},
        headers=auth_header("not.a.token"),
    )

    assert response.status_code == 403
    assert response.json() == {"message": "Invalid token"}


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Margherita", "price": 11.5},
        {"name": "", "price": -1},
        {},
    ],
)
def test_other_restaurant_cannot_write_menu(client, owner, rival, payload):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/menu",
        json=payload,
        headers=rival.headers,
    )

    assert response.status_code == 403
    assert response.json() == {"message": "Unauthorized"}
    assert client.get(f"/api/restaurants/{owner.restaurant_id}/menu").json() == []


def test_user_account_cannot_write_menu(client, owner, customer):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/menu",
        json={"name": "Margherita", "price": 11.5},
        headers=customer.headers,
    )

    assert response.status_code == 403


def test_menu_validation(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/menu",
        json={"name": "Margherita", "price": -2},
        headers=owner.headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "price"


# =============================================================================
# TABLES
# =============================================================================

def test_created_table_appears_in_lists_and_detail(client, owner):
    url = f"/api/restaurants/{owner.restaurant_id}/tables"
    response = client.post(url, json={"num": 4, "status": "available"}, headers=owner.headers)
    assert response.status_code == 201
    table = response.json()

    listed = client.get(url).json()
    assert listed == [table]

    detail = client.get(f"/api/restaurants/{owner.restaurant_id}").json()
    assert [t["id"] for t in detail["tables"]] == [table["id"]]

    summary = client.get("/api/restaurants").json()
    assert [t["id"] for t in summary[0]["tables"]] == [table["id"]]


def test_tables_listed_in_insertion_order(client, owner):
    url = f"/api/restaurants/{owner.restaurant_id}/tables"
    for num in (7, 2, 5):
        client.post(url, json={"num": num}, headers=owner.headers)

    listed = client.get(url).json()

    assert [t["num"] for t in listed] == [7, 2, 5]
    assert all(t["status"] == "available" for t in listed)


# =============================================================================
# BOOKINGS / ORDERS / FEEDBACK (open to anyone)
# =============================================================================

@pytest.mark.parametrize(
    "collection, payload",
    [
        ("bookings", BOOKING),
        ("orders", ORDER),
        ("feedback", FEEDBACK),
    ],
)
def test_open_collections_need_no_token_and_round_trip(client, owner, collection, payload):
    url = f"/api/restaurants/{owner.restaurant_id}/{collection}"

    response = client.post(url, json=payload)

    assert response.status_code == 201
    listed = client.get(url).json()
    assert len(listed) == 1
    for field, value in payload.items():
        assert listed[0][field] == value
    assert listed[0]["restaurantId"] == owner.restaurant_id


def test_booking_end_must_follow_start(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/bookings",
        json={**BOOKING, "end": BOOKING["start"]},
    )

    assert response.status_code == 400


@pytest.mark.parametrize(
    "start, end, field",
    [
        ("2025-06-01T19:00:00Z", "2025-06-01T21:00:00", "start"),
        ("2025-06-01T19:00:00", "2025-06-01T21:00:00+02:00", "end"),
        ("2025-06-01T19:00:00+02:00", "2025-06-01T21:00:00+02:00", "start"),
    ],
)
def test_booking_times_with_utc_offset_are_rejected(client, owner, start, end, field):
    url = f"/api/restaurants/{owner.restaurant_id}/bookings"

    response = client.post(url, json={**BOOKING, "start": start, "end": end})

    assert response.status_code == 400
    assert field in [e["field"] for e in response.json()["errors"]]
    assert client.get(url).json() == []


def test_overlapping_bookings_are_accepted(client, owner):
    url = f"/api/restaurants/{owner.restaurant_id}/bookings"
    first = client.post(url, json=BOOKING)
    second = client.post(
        url,
        json={**BOOKING, "start": "2025-06-01T20:00:00", "end": "2025-06-01T22:00:00", "userName": "Eli"},
    )

    assert first.status_code == second.status_code == 201
    assert [b["userName"] for b in client.get(url).json()] == ["Dana", "Eli"]


def test_feedback_ratings_are_bounded(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/feedback",
        json={**FEEDBACK, "foodRating": 6},
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "foodRating"


def test_order_needs_items(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/orders",
        json={**ORDER, "items": []},
    )

    assert response.status_code == 400


def test_order_items_are_stored_as_sent(client, owner):
    url = f"/api/restaurants/{owner.restaurant_id}/orders"
    items = [
        {"name": "Pizza", "price": 10, "notes": "no onions"},
        {"name": "Cola", "quantity": 2, "price": 2.5, "size": "large"},
    ]

    created = client.post(url, json={**ORDER, "items": items, "total": 15})

    assert created.status_code == 201
    assert created.json()["items"] == items
    assert client.get(url).json()[0]["items"] == items


def test_child_of_unknown_restaurant_is_404(client):
    response = client.post("/api/restaurants/4242/bookings", json=BOOKING)

    assert response.status_code == 404
    assert client.get("/api/restaurants/4242/bookings").json() == []


def test_collections_are_scoped_per_restaurant(client, owner, rival):
    client.post(f"/api/restaurants/{owner.restaurant_id}/feedback", json=FEEDBACK)

    assert client.get(f"/api/restaurants/{rival.restaurant_id}/feedback").json() == []


# =============================================================================
# INCOMES (private)
# =============================================================================

def test_incomes_are_private_to_owner(client, owner, rival):
    url = f"/api/restaurants/{owner.restaurant_id}/incomes"

    created = client.post(url, json={"amount": 125.5}, headers=owner.headers)
    assert created.status_code == 201
    assert created.json()["amount"] == 125.5

    assert client.post(url, json={"amount": 10}, headers=rival.headers).status_code == 403
    assert client.get(url).status_code == 401
    assert client.get(url, headers=rival.headers).status_code == 403

    listed = client.get(url, headers=owner.headers)
    assert listed.status_code == 200
    assert [i["amount"] for i in listed.json()] == [125.5]


def test_income_amount_must_be_positive(client, owner):
    response = client.post(
        f"/api/restaurants/{owner.restaurant_id}/incomes",
        json={"amount": 0},
        headers=owner.headers,
    )

    assert response.status_code == 400


# =============================================================================
# AGGREGATE
# =============================================================================

def test_detail_expands_every_collection(client, owner):
    rid = owner.restaurant_id
    base = f"/api/restaurants/{rid}"
    client.post(f"{base}/menu", json={"name": "Soup", "price": 4}, headers=owner.headers)
    client.post(f"{base}/tables", json={"num": 1}, headers=owner.headers)
    client.post(f"{base}/bookings", json=BOOKING)
    client.post(f"{base}/orders", json=ORDER)
    client.post(f"{base}/feedback", json=FEEDBACK)
    client.post(f"{base}/incomes", json={"amount": 26}, headers=owner.headers)

    detail = client.get(base).json()

    for collection in ("menu", "tables", "bookings", "orders", "feedback", "incomes"):
        assert len(detail[collection]) == 1, collection
    assert detail["menu"][0]["name"] == "Soup"
    assert detail["orders"][0]["items"] == ORDER["items"]

    summary = client.get("/api/restaurants").json()[0]
    assert "bookings" not in summary
    assert len(summary["menu"]) == 1


def test_store_failure_is_500_with_driver_message(client, owner, monkeypatch):
    async def failing_execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AsyncSession, "execute", failing_execute)

    response = client.get(f"/api/restaurants/{owner.restaurant_id}/menu")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Server error"
    assert "disk I/O error" in body["error"]
