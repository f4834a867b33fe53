"""
Order Burst Simulation Script

Fires a burst of concurrent pizza orders at a running relay to check how
sends interleave. Best run against ENV_MODE=development (mock session):
against a real session every order becomes a real WhatsApp message.

Run from project root: python scripts/simulate.py --orders 20
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 20

# Sample data for random orders
NAMES = ["Asha", "Ravi", "Meera", "Karthik", "Divya", "Arjun", "Priya", None]
MENU_ITEMS = [
    {"name": "Margherita", "price": 150},
    {"name": "Farmhouse", "price": 260},
    {"name": "Peppy Paneer", "price": 240},
    {"name": "Chicken Dominator", "price": 320},
    {"name": "Garlic Bread", "price": 99},
    {"name": "Choco Lava Cake", "price": 109},
    {"name": "Coke", "price": None},
]
NOTES = [None, "less spicy", "extra cheese", "ring the bell twice", "no onions"]


def generate_random_items() -> list[dict]:
    """Generate random order items."""
    items = []
    for _ in range(random.randint(1, 4)):
        item = random.choice(MENU_ITEMS).copy()
        item["qty"] = random.randint(1, 3)
        items.append(item)
    return items


def generate_order_payload(phone: str) -> dict[str, Any]:
    """Generate payload for /api/order."""
    return {
        "phone": phone,
        "name": random.choice(NAMES),
        "items": generate_random_items(),
        "notes": random.choice(NOTES),
    }


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    phone: str,
) -> dict[str, Any]:
    """Send one order and time it."""
    payload = generate_order_payload(phone)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/order", json=payload, timeout=60.0)
        elapsed = round(time.time() - start_time, 3)
        data = response.json()
        return {
            "order_num": order_num,
            "success": response.status_code == 200 and data.get("success", False),
            "status": response.status_code,
            "id": data.get("id"),
            "error": data.get("error"),
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "status": None,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def preflight() -> bool:
    """Check the relay is up and its session is ready."""
    print("\n🧪 Pre-flight...")
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/api/status")
        except httpx.HTTPError as e:
            print(f"   ❌ Relay unreachable: {e}")
            return False

    data = response.json()
    if not data.get("ready"):
        print("   ❌ Session not ready. Scan the QR code on the operator page first.")
        return False

    print(f"   ✅ Ready as {(data.get('info') or {}).get('pushname', 'unknown')}")
    return True


async def run_simulation(phone: str, num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Send ``num_orders`` orders concurrently and summarize the outcome.

    Args:
        phone: Recipient phone number for every order
        num_orders: Number of orders to send
    """
    print("=" * 70)
    print("🔥 ORDER BURST SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"📱 Recipient: {phone}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        tasks = [send_order(client, i + 1, phone) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Sent: {len(successful)}/{num_orders}")
    print(f"❌ Failed: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']} [{f['status']}]: {f.get('error') or 'Unknown error'}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Burst Simulation Script")
    parser.add_argument("--phone", default="919876543210", help="Recipient phone number")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="Relay base URL")
    parser.add_argument("--skip-preflight", action="store_true", help="Skip the readiness check")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_preflight and not asyncio.run(preflight()):
        sys.exit(1)

    asyncio.run(run_simulation(args.phone, args.orders))
