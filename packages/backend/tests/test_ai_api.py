"""Restaurant assistant API tests — chat streaming and recommendations.

Learn: `ai.client` is what get_completion_client returns for the
request. None means "no key configured"; otherwise it's a real
ModelFallbackClient over a FakeProvider, so the fallback loop runs too.
"""

import json
from datetime import date

import pytest

from fakes import FakeAPIError, FakeProvider, FakeStream, completion, menu_item
from smartdine.ai.fallback import ModelFallbackClient
from smartdine.ai.streaming import APOLOGY, DONE_FRAME
from smartdine.db.models import Reservation

CHAT = {"message": "What's vegan tonight?"}


def _contents(body: str) -> list[str]:
    frames = [f for f in body.split("\n\n") if f]
    assert frames[-1] + "\n\n" == DONE_FRAME
    return [json.loads(f[len("data: "):])["content"] for f in frames[:-1]]


# ─── Chat ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_chat_unconfigured_is_503(client):
    r = await client.post("/api/v1/ai/chat", json=CHAT)
    assert r.status_code == 503
    assert "not configured" in r.json()["detail"]


@pytest.mark.asyncio
async def test_chat_streams_server_sent_events(client, ai):
    provider = FakeProvider({"llama-3.1-70b": FakeStream([None, "Hel", "lo"])})
    ai.client = ModelFallbackClient(provider, "Llama 3.1 70B")

    r = await client.post("/api/v1/ai/chat", json=CHAT)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["cache-control"] == "no-cache"
    assert r.headers["x-accel-buffering"] == "no"
    assert _contents(r.text) == ["Hel", "lo"]
    assert provider.tried == ["Llama 3.1 70B", "llama 3.1 70b", "llama-3.1-70b"]


@pytest.mark.asyncio
async def test_chat_prompt_carries_menu_and_bookings(client, ai, db):
    await db.add(
        menu_item("Tofu Bowl", dietary={"vegan": True}),
        menu_item("Old Special", available=False),
        Reservation(
            user_id="u1", date=date.today(), time="19:00", guests=2,
            event_type="regular", status="approved",
            contact_phone="555-0100", contact_email="a@example.com",
        ),
    )
    provider = FakeProvider({"m": FakeStream(["ok"])})
    ai.client = ModelFallbackClient(provider, "m")

    r = await client.post("/api/v1/ai/chat", json=CHAT)
    assert r.status_code == 200

    [call] = provider.calls
    assert call["stream"] is True
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 500
    system = call["messages"][0]["content"]
    assert "Tofu Bowl" in system
    assert "Old Special" not in system
    assert "Today's reservations: 1 reservations scheduled." in system
    assert call["messages"][1]["content"] == CHAT["message"]


@pytest.mark.asyncio
async def test_chat_mid_stream_failure_ends_with_apology(client, ai):
    stream = FakeStream(["Partial"], error=RuntimeError("connection reset"))
    ai.client = ModelFallbackClient(FakeProvider({"m": stream}), "m")

    r = await client.post("/api/v1/ai/chat", json=CHAT)

    assert r.status_code == 200
    assert _contents(r.text) == ["Partial", APOLOGY]


@pytest.mark.asyncio
async def test_chat_no_usable_model_is_502(client, ai):
    provider = FakeProvider(models=["other"])
    ai.client = ModelFallbackClient(provider, "m")

    r = await client.post("/api/v1/ai/chat", json=CHAT)

    assert r.status_code == 502
    assert "model not found" in r.json()["detail"].lower()
    assert provider.tried == ["m", "other"]


@pytest.mark.asyncio
async def test_chat_provider_rejection_is_502_without_fallback(client, ai):
    denied = FakeAPIError("Incorrect API key provided", status_code=401)
    provider = FakeProvider({"m": denied})
    ai.client = ModelFallbackClient(provider, "m")

    r = await client.post("/api/v1/ai/chat", json=CHAT)

    assert r.status_code == 502
    assert r.json()["detail"] == "Incorrect API key provided"
    assert len(provider.calls) == 1
    assert provider.list_calls == 0


@pytest.mark.asyncio
async def test_chat_failure_before_first_token_is_a_json_error(client, ai):
    stream = FakeStream([], error=RuntimeError("upstream closed"))
    ai.client = ModelFallbackClient(FakeProvider({"m": stream}), "m")

    r = await client.post("/api/v1/ai/chat", json=CHAT)

    assert r.status_code == 502
    assert r.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_chat_validates_the_message(client):
    r = await client.post("/api/v1/ai/chat", json={"message": ""})
    assert r.status_code == 422


# ─── Recommendations ─────────────────────────────────────


async def _seed_menu(db):
    await db.add(
        menu_item("Pad Thai", popularity=1),
        menu_item("Green Curry", popularity=9),
        menu_item("Spring Rolls", popularity=5),
        menu_item("Tom Yum", popularity=3),
        menu_item("Mango Sticky Rice", popularity=7),
        menu_item("Satay", popularity=2),
        menu_item("Off Menu", popularity=99, available=False),
    )


@pytest.mark.asyncio
async def test_recommend_without_ai_returns_popular_dishes(client, db):
    await _seed_menu(db)

    r = await client.post("/api/v1/ai/recommend")

    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "popular"
    assert [d["name"] for d in data["recommendations"]] == [
        "Green Curry", "Mango Sticky Rice", "Spring Rolls", "Tom Yum", "Satay",
    ]


@pytest.mark.asyncio
async def test_recommend_pads_ai_picks_with_popular_dishes(client, db, ai):
    await _seed_menu(db)
    answer = completion('["Pad Thai", "Satay", "Unicorn Steak"]')
    provider = FakeProvider({"m": answer})
    ai.client = ModelFallbackClient(provider, "m")

    r = await client.post("/api/v1/ai/recommend")

    data = r.json()
    assert data["source"] == "ai"
    assert [d["name"] for d in data["recommendations"]] == [
        "Pad Thai", "Satay", "Green Curry", "Mango Sticky Rice", "Spring Rolls",
    ]
    [call] = provider.calls
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 200


@pytest.mark.asyncio
async def test_recommend_falls_back_when_the_provider_fails(client, db, ai):
    await _seed_menu(db)
    ai.client = ModelFallbackClient(
        FakeProvider({"m": FakeAPIError("Service unavailable", status_code=503)}), "m"
    )

    r = await client.post("/api/v1/ai/recommend")

    assert r.status_code == 200
    assert r.json()["source"] == "popular"
    assert len(r.json()["recommendations"]) == 5
