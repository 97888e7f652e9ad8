"""WebSocket endpoint tests — real sockets through Starlette's TestClient.

Learn: To prove a client did NOT get an event, send it a ping after the
event was published: frames leave each connection in order, so if the
next frame is the pong, nothing was queued before it.
"""

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import ADMIN, OTHER_CUSTOMER
from fakes import menu_item, order_payload
from smartdine.auth.jwt import create_access_token
from smartdine.config import settings
from smartdine.main import app
from smartdine.realtime.channels import ADMIN as ADMIN_ADDRESS, EVERYONE, ChannelAddress
from smartdine.realtime.notifier import Notifier

PONG = {"event": "pong", "data": None}


def _sync(ws):
    """Round-trip a ping; returns the first frame that arrives."""
    ws.send_json({"event": "ping"})
    return ws.receive_json()


def _registry():
    return app.state.registry


def test_end_to_end_new_order_reaches_admin_only(live_app):
    with live_app.websocket_connect("/ws") as customer, live_app.websocket_connect("/ws") as staff:
        customer.send_json({"event": "join", "data": "u1"})
        staff.send_json({"event": "join:admin"})
        assert _sync(customer) == PONG
        assert _sync(staff) == PONG

        notifier = Notifier(_registry())
        delivered = live_app.portal.call(notifier.new_order, order_payload("u2"))
        assert delivered == 1

        msg = staff.receive_json()
        assert msg["event"] == "order:new"
        assert msg["data"]["user_id"] == "u2"
        assert _sync(customer) == PONG


def test_order_status_change_over_http_reaches_the_owner(live_app, auth):
    live_app.portal.call(live_app.database.add, menu_item("Pad Thai", price=12.5))

    with live_app.websocket_connect("/ws") as owner, live_app.websocket_connect("/ws") as other:
        owner.send_json({"event": "join", "data": "u2"})
        other.send_json({"event": "join", "data": "u1"})
        assert _sync(owner) == PONG
        assert _sync(other) == PONG

        auth.use(OTHER_CUSTOMER)
        r = live_app.post(
            "/api/v1/orders",
            json={"items": [{"menu_item_id": 1, "quantity": 1}], "order_type": "pickup"},
        )
        assert r.status_code == 201
        order_id = r.json()["id"]

        auth.use(ADMIN)
        r = live_app.patch(f"/api/v1/orders/{order_id}/status", json={"status": "preparing"})
        assert r.status_code == 200

        msg = owner.receive_json()
        assert msg["event"] == "order:update"
        assert msg["data"]["id"] == order_id
        assert msg["data"]["status"] == "preparing"
        assert _sync(other) == PONG


def test_broadcast_reaches_every_open_socket(live_app, auth):
    with live_app.websocket_connect("/ws") as a, live_app.websocket_connect("/ws") as b:
        auth.use(ADMIN)
        r = live_app.post(
            "/api/v1/notifications/broadcast",
            json={"event": "menu:updated", "data": {"id": 3}},
        )
        assert r.status_code == 200
        assert r.json() == {"event": "menu:updated", "recipients": 2}

        for ws in (a, b):
            assert ws.receive_json() == {"event": "menu:updated", "data": {"id": 3}}


def test_typing_is_relayed_to_others_only(live_app):
    with live_app.websocket_connect("/ws") as a, live_app.websocket_connect("/ws") as b:
        assert _sync(b) == PONG
        a.send_json({"event": "typing", "data": {"user": "Ann"}})
        assert b.receive_json() == {"event": "user:typing", "data": {"user": "Ann"}}
        assert _sync(a) == PONG


def test_disconnect_leaves_every_channel(live_app):
    with live_app.websocket_connect("/ws") as ws:
        ws.send_json({"event": "join:admin"})
        assert _sync(ws) == PONG
        assert len(_registry().members(EVERYONE)) == 1

    with live_app.websocket_connect("/ws") as later:
        assert _sync(later) == PONG
        # Only the later socket is left once the first socket's teardown ran.
        assert len(_registry().members(EVERYONE)) == 1


def test_binary_frame_gets_an_error_and_the_socket_stays_up(live_app):
    with live_app.websocket_connect("/ws") as ws:
        ws.send_json({"event": "join", "data": "u1"})
        assert _sync(ws) == PONG

        ws.send_bytes(b'{"event": "ping"}')
        msg = ws.receive_json()
        assert msg["event"] == "error"
        assert msg["data"]["message"] == "Frames must be JSON text"

        assert _sync(ws) == PONG
        assert len(_registry().members(ChannelAddress.user("u1"))) == 1


# ─── Authentication ──────────────────────────────────────


def test_token_identity_limits_joins(live_app):
    token = create_access_token("u1", role="customer")
    with live_app.websocket_connect(f"/ws?token={token}") as ws:
        ws.send_json({"event": "join", "data": "u2"})
        assert ws.receive_json()["event"] == "error"

        ws.send_json({"event": "join:admin"})
        assert ws.receive_json() == {
            "event": "error",
            "data": {"message": "Admin access required"},
        }

        ws.send_json({"event": "join", "data": "u1"})
        assert _sync(ws) == PONG


def test_admin_token_can_join_admin(live_app):
    token = create_access_token("boss", role="admin")
    with live_app.websocket_connect(f"/ws?token={token}") as ws:
        ws.send_json({"event": "join:admin"})
        assert _sync(ws) == PONG
        assert len(_registry().members(ADMIN_ADDRESS)) == 1


def test_invalid_token_is_rejected(live_app):
    with pytest.raises(WebSocketDisconnect) as exc:
        with live_app.websocket_connect("/ws?token=not-a-jwt"):
            pass
    assert exc.value.code == 4001


def test_token_required_outside_development(live_app, monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    with pytest.raises(WebSocketDisconnect) as exc:
        with live_app.websocket_connect("/ws"):
            pass
    assert exc.value.code == 4001
