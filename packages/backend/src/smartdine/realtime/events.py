"""Domain events pushed to WebSocket clients.

Learn: The set of event kinds is closed. Each kind has exactly one
payload schema, so a frame named order:update always carries an
OrderRead and the frontend can rely on its shape.

Wire format (both directions): {"event": "<name>", "data": <payload>}
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from smartdine.schemas.feedback import FeedbackRead
from smartdine.schemas.notification import BroadcastMessage, NotificationRead
from smartdine.schemas.order import OrderRead
from smartdine.schemas.reservation import ReservationRead
from smartdine.schemas.review import ReviewRead


class EventKind(str, Enum):
    ORDER_NEW = "order:new"
    ORDER_UPDATE = "order:update"
    RESERVATION_NEW = "reservation:new"
    RESERVATION_UPDATE = "reservation:update"
    REVIEW_NEW = "review:new"
    REVIEW_RESPONSE = "review:response"
    FEEDBACK_NEW = "feedback:new"
    NOTIFICATION = "notification"
    BROADCAST = "broadcast"


PAYLOAD_TYPES: dict[EventKind, type[BaseModel]] = {
    EventKind.ORDER_NEW: OrderRead,
    EventKind.ORDER_UPDATE: OrderRead,
    EventKind.RESERVATION_NEW: ReservationRead,
    EventKind.RESERVATION_UPDATE: ReservationRead,
    EventKind.REVIEW_NEW: ReviewRead,
    EventKind.REVIEW_RESPONSE: ReviewRead,
    EventKind.FEEDBACK_NEW: FeedbackRead,
    EventKind.NOTIFICATION: NotificationRead,
    EventKind.BROADCAST: BroadcastMessage,
}

# ─── Connection-level frames (not domain events) ─────────

USER_TYPING = "user:typing"
PONG = "pong"
ERROR = "error"


def frame(event: str, data: Any = None) -> str:
    """Serialize one server → client frame."""
    return json.dumps({"event": event, "data": data})


@dataclass(frozen=True)
class DomainEvent:
    """An ephemeral {kind, payload} pair. Never stored, never mutated."""

    kind: EventKind
    payload: BaseModel

    def __post_init__(self):
        expected = PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.kind.value} expects {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @property
    def event_name(self) -> str:
        """Name clients listen for. Broadcasts travel under their own name."""
        if self.kind is EventKind.BROADCAST:
            return self.payload.event
        return self.kind.value

    def data(self) -> Any:
        if self.kind is EventKind.BROADCAST:
            return self.payload.data
        return self.payload.model_dump(mode="json")

    def to_frame(self) -> str:
        return frame(self.event_name, self.data())
