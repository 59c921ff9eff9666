"""
Concurrency Simulation Script

Registers a restaurant account, then fires concurrent bookings, orders and
feedback at it and checks that every created record shows up in the
restaurant's lists.
Run from project root against a running server: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime, timedelta
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5500"
TOTAL_REQUESTS = 50

# Sample data for random records
GUEST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "price": 14.99},
    {"name": "Caesar Salad", "price": 8.99},
    {"name": "Pasta Carbonara", "price": 13.99},
    {"name": "Tiramisu", "price": 7.99},
    {"name": "Sparkling Water", "price": 3.49},
]
REVIEWS = ["Lovely evening", "Food was cold", "Great service", "Will come back", "Too noisy"]


def generate_booking() -> dict[str, Any]:
    start = datetime.now().replace(minute=0, second=0, microsecond=0) + timedelta(
        days=random.randint(1, 14), hours=random.randint(0, 6)
    )
    return {
        "tableNum": random.randint(1, 10),
        "start": start.isoformat(),
        "end": (start + timedelta(hours=2)).isoformat(),
        "userName": random.choice(GUEST_NAMES),
    }


def generate_order() -> dict[str, Any]:
    items = []
    for item in random.sample(MENU_ITEMS, random.randint(1, 3)):
        items.append({**item, "quantity": random.randint(1, 3)})
    total = round(sum(i["price"] * i["quantity"] for i in items), 2)
    return {
        "userName": random.choice(GUEST_NAMES),
        "items": items,
        "total": total,
        "method": random.choice(["cash", "card"]),
    }


def generate_feedback() -> dict[str, Any]:
    return {
        "userName": random.choice(GUEST_NAMES),
        "text": random.choice(REVIEWS),
        "foodRating": random.randint(1, 5),
        "serviceRating": random.randint(1, 5),
    }


GENERATORS = {
    "bookings": generate_booking,
    "orders": generate_order,
    "feedback": generate_feedback,
}


# =============================================================================
# SETUP
# =============================================================================

async def create_restaurant_account(client: httpx.AsyncClient) -> tuple[int, str]:
    """Register a throw-away restaurant and return (restaurant id, token)."""
    email = f"sim-{uuid.uuid4().hex[:8]}@simulation.com"
    password = uuid.uuid4().hex

    response = await client.post(
        f"{API_BASE_URL}/api/auth/register",
        json={"email": email, "password": password, "name": "Simulation Bistro", "type": "restaurant"},
    )
    response.raise_for_status()

    response = await client.post(
        f"{API_BASE_URL}/api/auth/login",
        json={"email": email, "password": password},
    )
    response.raise_for_status()
    data = response.json()
    return data["user"]["restaurantId"], data["token"]


async def send_record(
    client: httpx.AsyncClient,
    restaurant_id: int,
    collection: str,
    request_num: int,
) -> dict[str, Any]:
    """Create one record in ``collection``."""
    payload = GENERATORS[collection]()
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/restaurants/{restaurant_id}/{collection}",
            json=payload,
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            return {
                "request_num": request_num,
                "success": True,
                "id": response.json()["id"],
                "collection": collection,
                "time": elapsed,
            }
        return {
            "request_num": request_num,
            "success": False,
            "error": response.text[:100],
            "collection": collection,
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "request_num": request_num,
            "success": False,
            "error": str(e)[:100],
            "collection": collection,
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_requests: int = TOTAL_REQUESTS) -> bool:
    """
    Run the concurrency simulation.

    Returns:
        True when every created record is listed by the restaurant
    """
    print("=" * 70)
    print("🔥 CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"📋 Total Requests: {num_requests}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        restaurant_id, token = await create_restaurant_account(client)
        print(f"\n🏠 Restaurant #{restaurant_id} registered")

        # Tables the random bookings refer to
        for num in range(1, 11):
            response = await client.post(
                f"{API_BASE_URL}/api/restaurants/{restaurant_id}/tables",
                json={"num": num, "status": "available"},
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
        print("🪑 10 tables created")

        collections = list(GENERATORS)
        start_time = time.time()
        tasks = [
            send_record(client, restaurant_id, collections[i % len(collections)], i + 1)
            for i in range(num_requests)
        ]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        response = await client.get(f"{API_BASE_URL}/api/restaurants/{restaurant_id}")
        response.raise_for_status()
        detail = response.json()

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    # Print results
    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful: {len(successful)}/{num_requests}")
    print(f"❌ Failed: {len(failed)}/{num_requests}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"   Average Response: {avg_time}s")

    consistent = True
    for collection in collections:
        created = {r["id"] for r in successful if r["collection"] == collection}
        listed = {record["id"] for record in detail[collection]}
        missing = created - listed
        status = "✅" if not missing else "❌"
        print(f"{status} {collection}: {len(created)} created, {len(listed)} listed")
        if missing:
            consistent = False
            print(f"   Missing ids: {sorted(missing)[:10]}")

    if failed:
        print(f"\n⚠️  Failed Request Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Request #{f['request_num']} [{f['collection']}]: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return consistent and not failed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency Simulation Script")
    parser.add_argument("--requests", type=int, default=TOTAL_REQUESTS, help="Number of records to create")
    parser.add_argument("--base-url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")
    ok = asyncio.run(run_simulation(args.requests))
    sys.exit(0 if ok else 1)
