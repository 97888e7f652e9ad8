"""Event emitter — one typed method per domain event kind.

Learn: Services call the notifier after their DB commit:

    order = await svc.place_order(...)       # persisted
    notifier.new_order(order)                # admin dashboards see it now

Routing is fixed per kind:
- order:new, reservation:new, review:new, feedback:new → admin
- order:update, reservation:update, review:response,
  notification → user:<owner>
- broadcast → everyone

Delivery is best-effort. A notifier without a registry (CLI scripts,
tests that skip the app lifespan) silently does nothing, and no method
ever raises into the calling service: a failed push must not undo a
committed order.
"""

from typing import Any, Optional

import structlog
from fastapi import Depends, Request

from smartdine.realtime.channels import ADMIN, EVERYONE, ChannelAddress, ChannelRegistry
from smartdine.realtime.events import PAYLOAD_TYPES, DomainEvent, EventKind
from smartdine.schemas.notification import BroadcastMessage

logger = structlog.get_logger()


class Notifier:
    """Resolves the target address for each event and publishes it."""

    def __init__(self, registry: Optional[ChannelRegistry] = None):
        self.registry = registry

    # ─── Admin-facing ─────────────────────────────────────

    def new_order(self, order: Any) -> int:
        return self._emit(EventKind.ORDER_NEW, order, lambda p: ADMIN)

    def new_reservation(self, reservation: Any) -> int:
        return self._emit(EventKind.RESERVATION_NEW, reservation, lambda p: ADMIN)

    def new_review(self, review: Any) -> int:
        return self._emit(EventKind.REVIEW_NEW, review, lambda p: ADMIN)

    def new_feedback(self, feedback: Any) -> int:
        return self._emit(EventKind.FEEDBACK_NEW, feedback, lambda p: ADMIN)

    # ─── Owner-facing ─────────────────────────────────────

    def order_updated(self, order: Any) -> int:
        return self._emit(EventKind.ORDER_UPDATE, order, _owner)

    def reservation_updated(self, reservation: Any) -> int:
        return self._emit(EventKind.RESERVATION_UPDATE, reservation, _owner)

    def review_responded(self, review: Any) -> int:
        return self._emit(EventKind.REVIEW_RESPONSE, review, _owner)

    def notify(self, notification: Any) -> int:
        return self._emit(EventKind.NOTIFICATION, notification, _owner)

    # ─── Everyone ─────────────────────────────────────────

    def broadcast(self, event: str, data: Optional[dict[str, Any]] = None) -> int:
        """Push a system message to every open connection under `event`."""
        if self.registry is None:
            return 0
        try:
            message = BroadcastMessage(event=event, data=data or {})
        except ValueError as e:
            logger.warning("realtime.broadcast_rejected", event_name=event, error=str(e))
            return 0
        return self._emit(EventKind.BROADCAST, message, lambda p: EVERYONE)

    # ─── Internals ────────────────────────────────────────

    def _emit(self, kind: EventKind, source: Any, route) -> int:
        if self.registry is None:
            return 0
        try:
            payload = PAYLOAD_TYPES[kind].model_validate(source)
            address = route(payload)
            count = self.registry.publish(address, DomainEvent(kind, payload))
        except Exception as e:
            logger.error("realtime.emit_failed", kind=kind.value, error=str(e))
            return 0

        logger.debug(
            "realtime.emitted",
            kind=kind.value,
            address=str(address),
            recipients=count,
        )
        return count


def _owner(payload: Any) -> ChannelAddress:
    return ChannelAddress.user(payload.user_id)


# ─── FastAPI dependencies ────────────────────────────────


def get_registry(request: Request) -> Optional[ChannelRegistry]:
    """The process-wide registry created in the app lifespan, if any."""
    return getattr(request.app.state, "registry", None)


def get_notifier(
    registry: Optional[ChannelRegistry] = Depends(get_registry),
) -> Notifier:
    return Notifier(registry)
