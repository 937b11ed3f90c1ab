"""
Map Traffic Simulation Script

Fires concurrent map requests (routes, tiles, static maps) at a running
proxy, the way a directions page and a tile-layer widget would.
Run from project root: python scripts/simulate.py
"""

import asyncio
import math
import sys
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_REQUESTS = 60

# Restaurants and customers around Lagos
PLACES = [
    (6.4281, 3.4219),  # Victoria Island
    (6.4474, 3.4723),  # Lekki Phase 1
    (6.5244, 3.3792),  # Yaba
    (6.6018, 3.3515),  # Ikeja
    (6.4550, 3.3841),  # Lagos Island
    (6.5095, 3.3711),  # Surulere
]


def random_route_payload() -> dict[str, float]:
    """Pick two distinct places as restaurant and customer."""
    (start_lat, start_lng), (end_lat, end_lng) = random.sample(PLACES, 2)
    return {"startLat": start_lat, "startLng": start_lng, "endLat": end_lat, "endLng": end_lng}


def tile_for(lat: float, lng: float, zoom: int) -> tuple[int, int]:
    """Slippy-map tile indices containing a coordinate."""
    n = 2 ** zoom
    x = int((lng + 180.0) / 360.0 * n)
    y = int((1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * n)
    return x, y


def random_tile_params(zoom: int = 14) -> dict[str, int]:
    """A tile over one of the sample places at the given zoom."""
    x, y = tile_for(*random.choice(PLACES), zoom)
    return {"x": x, "y": y, "z": zoom}


async def send_request(client: httpx.AsyncClient, kind: str, num: int) -> dict[str, Any]:
    """Send one map request and time it."""
    start = time.time()
    try:
        if kind == "route":
            response = await client.post(f"{API_BASE_URL}/maps/route", json=random_route_payload())
        elif kind == "tile":
            response = await client.get(f"{API_BASE_URL}/maps/tile", params=random_tile_params())
        else:
            lat, lng = random.choice(PLACES)
            response = await client.get(
                f"{API_BASE_URL}/maps/static",
                params={"lat": lat, "lng": lng},
                follow_redirects=False,
            )
        elapsed = round(time.time() - start, 3)

        # A static map redirect means the proxy fell back to the placeholder
        success = response.status_code == 200
        print(f"   #{num:<3} {kind:<6} {response.status_code} in {elapsed}s")
        return {
            "num": num,
            "kind": kind,
            "success": success,
            "status": response.status_code,
            "time": elapsed,
            "error": None if success else response.text[:100],
        }

    except httpx.HTTPError as e:
        return {
            "num": num,
            "kind": kind,
            "success": False,
            "status": None,
            "time": round(time.time() - start, 3),
            "error": str(e)[:100],
        }


async def run_simulation(num_requests: int = TOTAL_REQUESTS) -> dict[str, Any]:
    """Fire a mix of route, tile and static map requests concurrently."""
    print("=" * 70)
    print("🗺️  MAP TRAFFIC SIMULATION")
    print("=" * 70)
    print(f"📋 Total Requests: {num_requests}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    kinds = ["tile", "tile", "tile", "route", "static"]
    start_time = time.time()

    async with httpx.AsyncClient(timeout=30) as client:
        tasks = [send_request(client, kinds[i % len(kinds)], i + 1) for i in range(num_requests)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful: {len(successful)}/{num_requests}")
    print(f"❌ Failed or degraded: {len(failed)}/{num_requests}")
    print(f"⏱️  Total Time: {total_time}s")

    for kind in ("route", "tile", "static"):
        of_kind = [r for r in results if r["kind"] == kind]
        if of_kind:
            ok = len([r for r in of_kind if r["success"]])
            print(f"   {kind:<6}: {ok}/{len(of_kind)} successful")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print("\n⚠️  Failure Details (showing first 5):")
        for f in failed[:5]:
            print(f"   #{f['num']} [{f['kind']}] {f['status']}: {f['error']}")

    print("=" * 70)

    return {
        "total": num_requests,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_single_flows() -> bool:
    """Exercise each endpoint once before the load run."""
    print("\n" + "=" * 70)
    print("🧪 CHECKING INDIVIDUAL FLOWS")
    print("=" * 70)

    async with httpx.AsyncClient(timeout=30) as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')} (provider: {data.get('maps_service')})")

        print("\n2️⃣ Map Init...")
        response = await client.post(
            f"{API_BASE_URL}/maps/init",
            json={"center": {"lat": 6.5244, "lng": 3.3792}},
        )
        print(f"   {'✅' if response.status_code == 200 else '❌'} {response.text[:100]}")

        print("\n3️⃣ Route...")
        response = await client.post(f"{API_BASE_URL}/maps/route", json=random_route_payload())
        print(f"   {'✅' if response.status_code == 200 else '⚠️'} {response.text[:100]}")

        print("\n4️⃣ Reverse Geocode...")
        response = await client.get(f"{API_BASE_URL}/maps/geocode", params={"lat": 6.4281, "lng": 3.4219})
        print(f"   {'✅' if response.status_code == 200 else '⚠️'} {response.text[:100]}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Map Traffic Simulation Script")
    parser.add_argument("--requests", type=int, default=TOTAL_REQUESTS, help="Number of requests")
    parser.add_argument("--skip-checks", action="store_true", help="Skip individual flow checks")
    args = parser.parse_args()

    if not args.skip_checks:
        if not asyncio.run(check_single_flows()):
            print("\n❌ Pre-flight checks failed. Is the server running?")
            sys.exit(1)

    asyncio.run(run_simulation(args.requests))
