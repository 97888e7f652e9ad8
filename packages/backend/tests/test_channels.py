"""Channel registry tests — membership and best-effort fan-out."""

import gc
import json

import pytest

from fakes import FakeConnection
from smartdine.realtime.channels import (
    ADMIN,
    EVERYONE,
    ChannelAddress,
    ChannelRegistry,
)
from smartdine.realtime.events import frame


class Ping:
    def __init__(self, n: int = 0):
        self.n = n

    def to_frame(self) -> str:
        return frame("ping", {"n": self.n})


# ─── Addresses ───────────────────────────────────────────


def test_address_names():
    assert str(ChannelAddress.user("u1")) == "user:u1"
    assert str(ADMIN) == "admin"
    assert str(EVERYONE) == "*"


def test_user_address_is_value_equal():
    assert ChannelAddress.user("u1") == ChannelAddress.user(" u1 ")
    assert ChannelAddress.user("u1") != ChannelAddress.user("u2")


def test_user_address_rejects_empty_id():
    with pytest.raises(ValueError):
        ChannelAddress.user("  ")


# ─── Membership ──────────────────────────────────────────


def test_publish_reaches_exactly_the_joined_connections():
    reg = ChannelRegistry()
    a, b, c = FakeConnection("a"), FakeConnection("b"), FakeConnection("c")
    reg.join(a, ADMIN)
    reg.join(b, ADMIN)
    reg.join(c, ChannelAddress.user("u1"))

    assert reg.publish(ADMIN, Ping()) == 2
    assert len(a.frames) == 1
    assert len(b.frames) == 1
    assert c.frames == []


def test_join_is_idempotent():
    reg = ChannelRegistry()
    a = FakeConnection("a")
    reg.join(a, ADMIN)
    reg.join(a, ADMIN)

    assert reg.members(ADMIN) == ["a"]
    assert reg.publish(ADMIN, Ping()) == 1
    assert len(a.frames) == 1


def test_leave_removes_and_tolerates_absence():
    reg = ChannelRegistry()
    a = FakeConnection("a")
    reg.leave(a, ADMIN)  # never joined: no error

    reg.join(a, ADMIN)
    reg.leave(a, ADMIN)
    reg.leave(a, ADMIN)

    assert reg.members(ADMIN) == []
    assert reg.publish(ADMIN, Ping()) == 0
    assert a.frames == []


def test_leave_all_returns_every_address_left():
    reg = ChannelRegistry()
    a = FakeConnection("a")
    user = ChannelAddress.user("u1")
    for address in (EVERYONE, ADMIN, user):
        reg.join(a, address)

    left = reg.leave_all(a)

    assert set(left) == {EVERYONE, ADMIN, user}
    assert reg.addresses_of(a) == set()


def test_membership_follows_join_leave_sequences():
    reg = ChannelRegistry()
    conns = {name: FakeConnection(name) for name in "abcd"}
    ops = [
        ("join", "a"), ("join", "b"), ("leave", "a"), ("join", "c"),
        ("join", "a"), ("leave", "b"), ("leave", "d"), ("join", "d"),
    ]
    expected = set()
    for op, name in ops:
        getattr(reg, op)(conns[name], ADMIN)
        if op == "join":
            expected.add(name)
        else:
            expected.discard(name)
        assert set(reg.members(ADMIN)) == expected

    assert reg.publish(ADMIN, Ping()) == len(expected)
    assert {n for n, c in conns.items() if c.frames} == expected


def test_dropped_connection_stops_receiving():
    """The registry holds weak references only."""
    reg = ChannelRegistry()
    a = FakeConnection("a")
    reg.join(a, ADMIN)
    del a
    gc.collect()

    assert reg.members(ADMIN) == []
    assert reg.publish(ADMIN, Ping()) == 0


# ─── Delivery ────────────────────────────────────────────


def test_publish_to_empty_address_returns_zero():
    reg = ChannelRegistry()
    assert reg.publish(ChannelAddress.user("nobody"), Ping()) == 0


def test_one_failing_recipient_does_not_stop_the_rest():
    reg = ChannelRegistry()
    good1, bad, good2 = FakeConnection("g1"), FakeConnection("bad", fail=True), FakeConnection("g2")
    for conn in (good1, bad, good2):
        reg.join(conn, ADMIN)

    assert reg.publish(ADMIN, Ping()) == 3
    assert len(good1.frames) == 1
    assert len(good2.frames) == 1


def test_exclude_skips_one_connection():
    reg = ChannelRegistry()
    a, b = FakeConnection("a"), FakeConnection("b")
    reg.join(a, EVERYONE)
    reg.join(b, EVERYONE)

    assert reg.publish(EVERYONE, Ping(), exclude=a) == 1
    assert a.frames == []
    assert len(b.frames) == 1


def test_events_to_one_address_arrive_in_publish_order():
    reg = ChannelRegistry()
    a = FakeConnection("a")
    reg.join(a, ADMIN)
    for n in range(5):
        reg.publish(ADMIN, Ping(n))

    assert [json.loads(f)["data"]["n"] for f in a.frames] == [0, 1, 2, 3, 4]
