"""WebSocket endpoint — real-time notifications for customers and staff.

Learn: Each browser tab connects once to /ws?token=JWT. The handler:
1. Authenticates via JWT query param (required outside development)
2. Hands the socket to the ConnectionManager (accept + everyone channel)
3. Feeds each incoming frame to the manager (join, typing, ping ...)
4. Tears the connection down exactly once, however the loop ends

Outbound frames are written by the connection's own writer task, so
this loop only ever reads.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, WebSocket

from smartdine.auth.dependencies import CurrentIdentity
from smartdine.auth.jwt import TokenError
from smartdine.config import settings
from smartdine.realtime.connections import ConnectionManager

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket):
    """WebSocket endpoint for order, reservation and review notifications.

    Authentication: JWT token as ?token= query param. In development
    mode, unauthenticated connections are allowed and their join
    requests are trusted.
    """
    manager: Optional[ConnectionManager] = getattr(
        websocket.app.state, "connections", None
    )
    if manager is None:
        await websocket.close(code=1011, reason="Real-time service unavailable")
        return

    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")
    identity: Optional[CurrentIdentity] = None

    if not token and settings.environment != "development":
        await websocket.close(code=4001, reason="Authentication required")
        return

    if token:
        try:
            identity = CurrentIdentity.from_token(token)
        except TokenError:
            await websocket.close(code=4001, reason="Invalid or expired token")
            return

    # ── Connection accepted ─────────────────────────────────
    conn = await manager.open(websocket, identity)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            manager.handle_message(conn, message.get("text"))
    finally:
        await manager.close(conn)
