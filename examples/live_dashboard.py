#!/usr/bin/env python3
"""
SmartDine live dashboard — print every staff event as it happens.

Joins the admin channel and prints new orders, reservations, reviews
and feedback until interrupted. Broadcasts (e.g. `smartdine broadcast
menu:updated`) show up too, since every socket receives them.

Run with: python examples/live_dashboard.py

Requires: pip install -e ".[examples]"
"""

import asyncio
import json

import websockets

from _common import check_backend, ws_url

LABELS = {
    "order:new": lambda d: f"Order #{d['id']} from {d['user_id']}: ${d['total_amount']:.2f}",
    "reservation:new": lambda d: f"Booking #{d['id']}: {d['guests']} guests on {d['date']} {d['time']}",
    "review:new": lambda d: f"Review #{d['id']}: {d['rating']}★ {d['title']}",
    "feedback:new": lambda d: f"Feedback #{d['id']}: {d['sentiment']} ({d['sentiment_score']:+.2f})",
}


async def main():
    async with websockets.connect(ws_url("dashboard", role="admin")) as ws:
        await ws.send(json.dumps({"event": "join:admin"}))
        print("Listening on the admin channel (Ctrl+C to stop)...\n")

        async for raw in ws:
            msg = json.loads(raw)
            event, data = msg["event"], msg["data"]
            if event == "pong":
                continue
            label = LABELS.get(event)
            print(f"[{event}] {label(data) if label else json.dumps(data)}")


if __name__ == "__main__":
    check_backend()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
