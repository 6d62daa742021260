#!/usr/bin/env python3
"""REST API client demonstration.

This example registers a few webhook targets and fires a trigger event.
First, start the server in another terminal:

    uvicorn hookrelay.api:app --reload

Then run this script:

    python examples/api_client.py

The API provides:
    POST /api/v1/webhooks/register      - Register a target URL
    PUT  /api/v1/webhooks/{id}/update   - Change a target URL
    GET  /api/v1/webhooks/list          - List target URLs
    GET  /api/v1/webhooks/trigger       - Notify every target
    GET  /api/v1/health                 - Health check
"""

import asyncio

import httpx

BASE_URL = "http://localhost:8000/api/v1"


async def main() -> None:
    """Run the API client demo."""
    print("=" * 60)
    print("hookrelay REST API Demo")
    print("=" * 60)
    print(f"\nConnecting to {BASE_URL}...")

    async with httpx.AsyncClient(timeout=60.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            resp.raise_for_status()
            health = resp.json()
            print(f"  Status: {health['status']}")
            print(f"  Version: {health['version']}")
        except httpx.ConnectError:
            print("\nCould not connect to API server!")
            print("   Start the server with: uvicorn hookrelay.api:app --reload")
            return

        # Register targets: one reachable, one refusing connections, one malformed
        urls = [
            "https://httpbin.org/post",
            "http://localhost:9/unreachable",
            "localhost:3000/test1",
        ]
        ids = []
        for url in urls:
            resp = await client.post(f"{BASE_URL}/webhooks/register", json={"targetURL": url})
            resp.raise_for_status()
            ids.append(resp.json()["id"])
            print(f"  Registered {url} -> {ids[-1]}")

        resp = await client.put(
            f"{BASE_URL}/webhooks/{ids[0]}/update",
            json={"newTargetURL": "https://httpbin.org/anything"},
        )
        resp.raise_for_status()
        print(f"\n  {resp.json()['message']}: {resp.json()['updatedURL']}")

        resp = await client.get(f"{BASE_URL}/webhooks/list", params={"pageSize": 50})
        resp.raise_for_status()
        print(f"\n  Registered targets: {len(resp.json())}")

        resp = await client.get(f"{BASE_URL}/webhooks/trigger", params={"ipAddress": "203.0.113.7"})
        resp.raise_for_status()
        report = resp.json()
        summary = report["summary"]
        print(f"\n  Event {report['event_id']}:")
        print(
            f"  {summary['succeeded']}/{summary['total']} delivered, "
            f"{summary['attempts']} calls made"
        )
        for result in report["results"]:
            detail = result["error"] or result["status_code"]
            print(f"    [{result['status']}] {result['url']} x{result['attempts']} ({detail})")


if __name__ == "__main__":
    asyncio.run(main())
