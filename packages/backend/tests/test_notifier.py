"""Event emitter tests — routing per event kind, no-op without a registry."""

import json

import pytest

from fakes import FakeConnection, NOW, order_payload, reservation_payload
from smartdine.realtime.channels import ADMIN, EVERYONE, ChannelAddress, ChannelRegistry
from smartdine.realtime.events import DomainEvent, EventKind
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.feedback import FeedbackRead
from smartdine.schemas.notification import BroadcastMessage, NotificationRead
from smartdine.schemas.review import ReviewRead


def review_payload(user_id: str = "u1") -> ReviewRead:
    return ReviewRead(
        id=3, user_id=user_id, menu_item_id=None, order_id=None, rating=5,
        title="Great", comment="Loved it", status="pending", response_text=None,
        responded_by=None, responded_at=None, created_at=NOW,
    )


def feedback_payload() -> FeedbackRead:
    return FeedbackRead(
        id=4, user_id="u1", order_id=None, rating=2, comment="Cold food",
        sentiment="negative", sentiment_score=-0.6, created_at=NOW,
    )


def notification_payload(user_id: str = "u1") -> NotificationRead:
    return NotificationRead(
        id=9, user_id=user_id, type="promotion", title="2 for 1", message="Tonight only",
        read=False, link=None, data=None, created_at=NOW,
    )


@pytest.fixture()
def wired():
    """A registry with one admin dashboard, u1's tab, and u2's tab."""
    reg = ChannelRegistry()
    conns = {
        "admin": FakeConnection("admin"),
        "u1": FakeConnection("u1"),
        "u2": FakeConnection("u2"),
    }
    reg.join(conns["admin"], ADMIN)
    reg.join(conns["u1"], ChannelAddress.user("u1"))
    reg.join(conns["u2"], ChannelAddress.user("u2"))
    for conn in conns.values():
        reg.join(conn, EVERYONE)
    return Notifier(reg), conns


def _received(conns) -> dict[str, list[str]]:
    return {name: [e["event"] for e in c.events] for name, c in conns.items()}


@pytest.mark.parametrize(
    "method, payload, event, target",
    [
        ("new_order", order_payload("u2"), "order:new", "admin"),
        ("new_reservation", reservation_payload("u1"), "reservation:new", "admin"),
        ("new_review", review_payload("u1"), "review:new", "admin"),
        ("new_feedback", feedback_payload(), "feedback:new", "admin"),
        ("order_updated", order_payload("u2"), "order:update", "u2"),
        ("reservation_updated", reservation_payload("u1"), "reservation:update", "u1"),
        ("review_responded", review_payload("u1"), "review:response", "u1"),
        ("notify", notification_payload("u2"), "notification", "u2"),
    ],
)
def test_each_kind_reaches_only_its_address(wired, method, payload, event, target):
    notifier, conns = wired

    assert getattr(notifier, method)(payload) == 1

    expected = {name: [] for name in conns}
    expected[target] = [event]
    assert _received(conns) == expected


def test_payload_is_serialized_with_its_schema(wired):
    notifier, conns = wired
    notifier.order_updated(order_payload("u2", order_id=42, status="ready"))

    [msg] = conns["u2"].events
    assert msg["event"] == "order:update"
    assert msg["data"]["id"] == 42
    assert msg["data"]["status"] == "ready"
    assert msg["data"]["items"][0]["name"] == "Pad Thai"


def test_payload_is_not_mutated(wired):
    notifier, _ = wired
    payload = order_payload("u2")
    before = payload.model_dump()
    notifier.new_order(payload)
    notifier.order_updated(payload)
    assert payload.model_dump() == before


def test_broadcast_goes_to_everyone_under_its_own_name(wired):
    notifier, conns = wired
    assert notifier.broadcast("menu:updated", {"id": 3}) == 3
    for conn in conns.values():
        assert conn.events == [{"event": "menu:updated", "data": {"id": 3}}]


def test_broadcast_with_invalid_event_name_is_dropped(wired):
    notifier, conns = wired
    assert notifier.broadcast("Not A Name!", {}) == 0
    assert all(c.frames == [] for c in conns.values())


def test_no_registry_is_a_silent_noop():
    notifier = Notifier(None)
    assert notifier.new_order(order_payload()) == 0
    assert notifier.order_updated(order_payload()) == 0
    assert notifier.broadcast("menu:updated", {"id": 1}) == 0


def test_nobody_listening_returns_zero():
    notifier = Notifier(ChannelRegistry())
    assert notifier.new_order(order_payload()) == 0
    assert notifier.notify(notification_payload("ghost")) == 0


def test_emitter_never_raises_on_a_bad_payload(wired):
    notifier, conns = wired
    assert notifier.new_order({"not": "an order"}) == 0
    assert all(c.frames == [] for c in conns.values())


# ─── Domain events ───────────────────────────────────────


def test_domain_event_rejects_the_wrong_payload_type():
    with pytest.raises(TypeError):
        DomainEvent(EventKind.ORDER_NEW, reservation_payload())


def test_domain_event_frame_shape():
    event = DomainEvent(EventKind.RESERVATION_UPDATE, reservation_payload("u1"))
    msg = json.loads(event.to_frame())
    assert msg["event"] == "reservation:update"
    assert msg["data"]["date"] == "2026-10-18"
    assert msg["data"]["time"] == "19:30"


def test_broadcast_event_uses_the_message_name():
    event = DomainEvent(
        EventKind.BROADCAST, BroadcastMessage(event="kitchen:closed", data={"until": "18:00"})
    )
    assert event.event_name == "kitchen:closed"
    assert json.loads(event.to_frame()) == {
        "event": "kitchen:closed",
        "data": {"until": "18:00"},
    }
