"""Channel registry — maps channel addresses to live connections.

Learn: An address is a routing key, never persisted:
- user:<id>  one customer's devices/tabs
- admin      every connected staff dashboard
- *          every open connection (system broadcasts)

The registry holds weak references only. Connections are owned by the
ConnectionManager; if one is dropped without a leave, it simply stops
showing up as a recipient.

Every method here is synchronous. Nothing awaits while the mapping is
being changed, so on a single event loop no locking is needed, and
events published to one address reach each connection in publish order.
"""

import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

import structlog

logger = structlog.get_logger()


class AddressKind(str, Enum):
    USER = "user"
    ROLE = "role"
    EVERYONE = "everyone"


@dataclass(frozen=True)
class ChannelAddress:
    """A routing key: one user, one role, or everyone."""

    kind: AddressKind
    key: str = ""

    @classmethod
    def user(cls, user_id: str) -> "ChannelAddress":
        user_id = str(user_id).strip()
        if not user_id:
            raise ValueError("user id must be non-empty")
        return cls(AddressKind.USER, user_id)

    @classmethod
    def role(cls, role: str) -> "ChannelAddress":
        return cls(AddressKind.ROLE, role)

    def __str__(self) -> str:
        if self.kind is AddressKind.USER:
            return f"user:{self.key}"
        if self.kind is AddressKind.ROLE:
            return self.key
        return "*"


ADMIN = ChannelAddress.role("admin")
EVERYONE = ChannelAddress(AddressKind.EVERYONE)


class DeliveryError(Exception):
    """Raised by a connection that cannot take another frame (closed or backed up)."""


class Connection(Protocol):
    """What the registry needs from a connection.

    send() must not block: it hands the frame to the connection's own
    writer and raises DeliveryError if that is impossible.
    """

    id: str

    def send(self, frame: str) -> None:
        ...


class Frame(Protocol):
    def to_frame(self) -> str:
        ...


class ChannelRegistry:
    """Address → set of live connections, with best-effort fan-out."""

    def __init__(self):
        self._channels: dict[ChannelAddress, weakref.WeakValueDictionary] = {}

    # ─── Membership ───────────────────────────────────────

    def join(self, connection: Connection, address: ChannelAddress) -> None:
        """Add a connection to an address. Joining twice is a no-op."""
        members = self._channels.get(address)
        if members is None:
            members = self._channels[address] = weakref.WeakValueDictionary()
        members[connection.id] = connection

    def leave(self, connection: Connection, address: ChannelAddress) -> None:
        """Remove a connection from an address. No error if it wasn't there."""
        members = self._channels.get(address)
        if members is None:
            return
        members.pop(connection.id, None)
        if not members:
            del self._channels[address]

    def leave_all(self, connection: Connection) -> list[ChannelAddress]:
        """Remove a connection from every address. Returns the addresses it left."""
        left = [
            address
            for address, members in self._channels.items()
            if connection.id in members
        ]
        for address in left:
            self.leave(connection, address)
        return left

    def members(self, address: ChannelAddress) -> list[str]:
        """Connection ids currently joined to an address."""
        members = self._channels.get(address)
        return list(members.keys()) if members else []

    def addresses_of(self, connection: Connection) -> set[ChannelAddress]:
        return {
            address
            for address, members in self._channels.items()
            if connection.id in members
        }

    # ─── Delivery ─────────────────────────────────────────

    def publish(
        self,
        address: ChannelAddress,
        event: Frame,
        exclude: Optional[Connection] = None,
    ) -> int:
        """Send an event to every connection joined to `address`.

        Returns the number of recipients it was addressed to (0 is fine —
        nobody listening is a normal state). A recipient that fails to
        accept the frame is logged and skipped; the rest still get it.
        """
        members = self._channels.get(address)
        if not members:
            return 0

        recipients = [c for c in list(members.values()) if c is not exclude]
        if not recipients:
            return 0

        frame = event.to_frame()
        for connection in recipients:
            try:
                connection.send(frame)
            except Exception as e:
                logger.warning(
                    "realtime.delivery_failed",
                    address=str(address),
                    connection=connection.id,
                    error=str(e),
                )
        return len(recipients)
