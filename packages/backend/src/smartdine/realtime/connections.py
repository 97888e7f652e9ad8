"""Connection lifecycle manager — owns every open WebSocket.

Learn: A connection moves through

    CONNECTING → OPEN → CLOSED

and while OPEN it may be joined to one user channel and, independently,
to the admin channel. Every open connection is also in the implicit
"everyone" channel used for system broadcasts.

Each connection has its own outbox (asyncio.Queue) drained by a single
writer task:
- publishers call send(), which only enqueues, so a slow client never
  stalls the service that emitted the event
- one writer per socket means frames leave in the order they were published

Client → server frames:
- {"event": "join", "data": "<user id>"}
- {"event": "join:admin"} / {"event": "leave:admin"}
- {"event": "typing", "data": {...}}  → relayed as user:typing to the others
- {"event": "ping"}                    → pong
"""

import asyncio
import json
import uuid
from contextlib import suppress
from enum import Enum
from typing import Any, Optional

import structlog
from fastapi import WebSocket

from smartdine.auth.dependencies import CurrentIdentity
from smartdine.realtime.channels import (
    ADMIN,
    EVERYONE,
    ChannelAddress,
    ChannelRegistry,
    DeliveryError,
)
from smartdine.realtime.events import ERROR, PONG, USER_TYPING, frame

logger = structlog.get_logger()


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class WebSocketConnection:
    """One client socket plus its outbound queue and writer task."""

    def __init__(
        self,
        websocket: WebSocket,
        identity: Optional[CurrentIdentity] = None,
        outbox_size: int = 256,
    ):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.identity = identity
        self.state = ConnectionState.CONNECTING
        self.user_address: Optional[ChannelAddress] = None
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self._writer: Optional[asyncio.Task] = None
        self._broken = False

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.id} {self.state.value}>"

    # ─── Outbound ─────────────────────────────────────────

    def send(self, frame: str) -> None:
        """Queue a frame for this client. Never blocks.

        Raises DeliveryError if the connection is closed, its writer
        has failed, or the outbox is full (client not reading).
        """
        if self.state is ConnectionState.CLOSED or self._broken:
            raise DeliveryError(f"connection {self.id} is closed")
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            raise DeliveryError(f"connection {self.id} outbox is full")

    def start_writer(self) -> None:
        self._writer = asyncio.create_task(self._write_loop())
        self.state = ConnectionState.OPEN

    async def flush(self) -> None:
        """Wait until every queued frame has been written (or dropped)."""
        await self._outbox.join()

    async def stop_writer(self) -> None:
        self.state = ConnectionState.CLOSED
        if self._writer is None:
            return
        self._writer.cancel()
        with suppress(asyncio.CancelledError):
            await self._writer
        self._writer = None

    async def _write_loop(self) -> None:
        try:
            while True:
                item = await self._outbox.get()
                try:
                    await self.websocket.send_text(item)
                finally:
                    self._outbox.task_done()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Socket is gone; the reader side will notice and close us.
            self._broken = True
            logger.info("realtime.write_failed", connection=self.id, error=str(e))
        finally:
            self._drain()

    def _drain(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()


class ConnectionManager:
    """Accepts sockets, applies client commands, and tears connections down.

    Learn: close() is safe to call any number of times, from any number
    of tasks. The connection is popped from the table before the first
    await, so only the first caller does the teardown.
    """

    def __init__(self, registry: ChannelRegistry, outbox_size: int = 256):
        self.registry = registry
        self.outbox_size = outbox_size
        self._connections: dict[str, WebSocketConnection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def get(self, connection_id: str) -> Optional[WebSocketConnection]:
        return self._connections.get(connection_id)

    # ─── Open / close ─────────────────────────────────────

    async def open(
        self,
        websocket: WebSocket,
        identity: Optional[CurrentIdentity] = None,
    ) -> WebSocketConnection:
        """Accept the socket and register it with the everyone channel."""
        await websocket.accept()
        conn = WebSocketConnection(websocket, identity, outbox_size=self.outbox_size)
        self._connections[conn.id] = conn
        self.registry.join(conn, EVERYONE)
        conn.start_writer()
        logger.info(
            "realtime.connected",
            connection=conn.id,
            user_id=identity.user_id if identity else None,
        )
        return conn

    async def close(self, conn: WebSocketConnection) -> bool:
        """Leave every channel and stop the writer. Returns False if already closed."""
        if self._connections.pop(conn.id, None) is None:
            return False
        left = self.registry.leave_all(conn)
        conn.user_address = None
        await conn.stop_writer()
        logger.info(
            "realtime.disconnected",
            connection=conn.id,
            channels=[str(a) for a in left],
        )
        return True

    async def close_all(self) -> None:
        """Server shutdown: tear down every connection and close its socket."""
        for conn in list(self._connections.values()):
            await self.close(conn)
            try:
                await conn.websocket.close(code=1001)
            except Exception as e:
                logger.debug("realtime.close_failed", connection=conn.id, error=str(e))

    # ─── Client commands ──────────────────────────────────

    def handle_message(self, conn: WebSocketConnection, raw: Optional[str]) -> None:
        """Parse one client frame and apply it. Binary frames arrive as None."""
        if raw is None:
            self._reply(conn, ERROR, {"message": "Frames must be JSON text"})
            return
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            self._reply(conn, ERROR, {"message": "Malformed frame"})
            return
        if not isinstance(msg, dict) or not isinstance(msg.get("event"), str):
            self._reply(conn, ERROR, {"message": "Frame must be {event, data}"})
            return

        event, data = msg["event"], msg.get("data")
        if event == "join":
            self.join_user(conn, data)
        elif event == "join:admin":
            self.join_admin(conn)
        elif event == "leave:admin":
            self.leave_admin(conn)
        elif event == "typing":
            self.relay_typing(conn, data)
        elif event == "ping":
            self._reply(conn, PONG)
        else:
            self._reply(conn, ERROR, {"message": f"Unknown event: {event}"})

    def join_user(self, conn: WebSocketConnection, user_id: Any) -> bool:
        """Join user:<id>. A second join for another id replaces the first."""
        if not isinstance(user_id, (str, int)) or not str(user_id).strip():
            self._reply(conn, ERROR, {"message": "join requires a user id"})
            return False
        address = ChannelAddress.user(str(user_id))

        if conn.identity is not None and conn.identity.user_id != address.key:
            logger.warning(
                "realtime.join_refused",
                connection=conn.id,
                requested=address.key,
                user_id=conn.identity.user_id,
            )
            self._reply(conn, ERROR, {"message": "Cannot join another user's channel"})
            return False

        if conn.user_address is not None and conn.user_address != address:
            self.registry.leave(conn, conn.user_address)
        self.registry.join(conn, address)
        conn.user_address = address
        logger.info("realtime.joined", connection=conn.id, address=str(address))
        return True

    def join_admin(self, conn: WebSocketConnection) -> bool:
        if conn.identity is not None and not conn.identity.is_admin:
            logger.warning(
                "realtime.join_refused",
                connection=conn.id,
                requested=str(ADMIN),
                user_id=conn.identity.user_id,
            )
            self._reply(conn, ERROR, {"message": "Admin access required"})
            return False
        self.registry.join(conn, ADMIN)
        logger.info("realtime.joined", connection=conn.id, address=str(ADMIN))
        return True

    def leave_admin(self, conn: WebSocketConnection) -> None:
        self.registry.leave(conn, ADMIN)
        logger.info("realtime.left", connection=conn.id, address=str(ADMIN))

    def relay_typing(self, conn: WebSocketConnection, data: Any) -> int:
        """Forward a typing indicator to every other open connection."""
        out = frame(USER_TYPING, data)
        delivered = 0
        for other in list(self._connections.values()):
            if other is conn or other.state is not ConnectionState.OPEN:
                continue
            try:
                other.send(out)
                delivered += 1
            except DeliveryError as e:
                logger.warning(
                    "realtime.delivery_failed",
                    address=USER_TYPING,
                    connection=other.id,
                    error=str(e),
                )
        return delivered

    def _reply(self, conn: WebSocketConnection, event: str, data: Any = None) -> None:
        try:
            conn.send(frame(event, data))
        except DeliveryError as e:
            logger.info("realtime.reply_dropped", connection=conn.id, error=str(e))
