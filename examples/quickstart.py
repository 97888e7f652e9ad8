#!/usr/bin/env python3
"""
SmartDine Quickstart — an order's full lifecycle, watched live.

A customer places an order while the kitchen dashboard and the
customer's own tab are connected over WebSockets. The kitchen moves the
order through its statuses and each step shows up on the customer's tab.

Run with: python examples/quickstart.py

Requires: pip install -e ".[examples]"
Backend must be running, with a menu (run `smartdine seed` once).
"""

import asyncio
import json
import sys
import uuid

import websockets

from _common import check_backend, create_client, ws_url

STATUSES = ["preparing", "ready", "delivered"]


async def _next_event(ws, event: str, timeout: float = 5.0) -> dict:
    """Read frames until `event` arrives (other events are printed and skipped)."""
    while True:
        msg = json.loads(await asyncio.wait_for(ws.recv(), timeout))
        if msg["event"] == event:
            return msg["data"]
        print(f"   (skipped {msg['event']})")


async def main():
    run_id = uuid.uuid4().hex[:6]
    customer_id = f"guest-{run_id}"
    customer = create_client(customer_id)
    kitchen = create_client(f"chef-{run_id}", role="admin")

    # ── Pick a dish ───────────────────────────────────────────────
    print("\n1. Asking for recommendations...")
    resp = customer.post("/ai/recommend")
    dishes = resp.json()["recommendations"]
    if not dishes:
        print("   The menu is empty; run `smartdine seed` first.")
        sys.exit(1)
    dish = dishes[0]
    print(f"   Picked: {dish['name']} (${dish['price']:.2f}) via {resp.json()['source']}")

    async with websockets.connect(ws_url(f"chef-{run_id}", role="admin")) as dashboard, \
            websockets.connect(ws_url(customer_id)) as tab:
        await dashboard.send(json.dumps({"event": "join:admin"}))
        await tab.send(json.dumps({"event": "join", "data": customer_id}))
        for ws in (dashboard, tab):
            await ws.send(json.dumps({"event": "ping"}))
            await _next_event(ws, "pong")

        # ── Place the order ───────────────────────────────────────
        print("\n2. Placing order...")
        resp = customer.post("/orders", json={
            "items": [{"menu_item_id": dish["id"], "quantity": 2}],
            "order_type": "pickup",
        })
        assert resp.status_code == 201, f"Failed: {resp.text}"
        order = resp.json()
        print(f"   Order #{order['id']} total ${order['total_amount']:.2f}")

        pushed = await _next_event(dashboard, "order:new")
        print(f"   Dashboard got order:new for #{pushed['id']}")

        # ── Kitchen works through it ──────────────────────────────
        print("\n3. Kitchen updates...")
        for status in STATUSES:
            resp = kitchen.patch(f"/orders/{order['id']}/status", json={"status": status})
            assert resp.status_code == 200, f"Failed: {resp.text}"
            update = await _next_event(tab, "order:update")
            print(f"   Customer tab: order #{update['id']} is {update['status']}")

    # ── Review it ─────────────────────────────────────────────────
    print("\n4. Leaving a review...")
    resp = customer.post("/reviews", json={
        "menu_item_id": dish["id"],
        "order_id": order["id"],
        "rating": 5,
        "title": "Quick and tasty",
        "comment": "Ready right when promised.",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print(f"   Review #{resp.json()['id']} posted")

    print("\n✓ Quickstart complete!")


if __name__ == "__main__":
    check_backend()
    asyncio.run(main())
