"""CLI tests — Click's CliRunner, with httpx's MockTransport standing in for the server."""

import json

import httpx
import pytest
from click.testing import CliRunner

from smartdine.auth.jwt import verify_token
from smartdine.cli import main as cli
from smartdine.db.seed import STARTER_MENU


@pytest.fixture()
def server(monkeypatch):
    """Route the CLI's HTTP client to a handler the test sets."""
    state = {"handler": None, "requests": []}

    def handle(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    monkeypatch.setattr(
        cli,
        "_client",
        lambda: httpx.AsyncClient(
            base_url="http://smartdine.test", transport=httpx.MockTransport(handle)
        ),
    )
    return state


def test_candidates_needs_no_server():
    result = CliRunner().invoke(cli.main, ["candidates", "Llama 3.1 70B"])
    assert result.exit_code == 0
    assert "1. Llama 3.1 70B" in result.output
    assert "6. llama3170b" in result.output


def test_token_mints_a_verifiable_token():
    result = CliRunner().invoke(cli.main, ["token", "u42", "--role", "admin"])
    assert result.exit_code == 0
    payload = verify_token(result.output.strip())
    assert (payload["sub"], payload["role"]) == ("u42", "admin")


def test_chat_prints_the_streamed_answer(server):
    body = 'data: {"content": "Try the "}\n\ndata: {"content": "Tofu Bowl"}\n\ndata: [DONE]\n\n'
    server["handler"] = lambda request: httpx.Response(
        200, text=body, headers={"content-type": "text/event-stream"}
    )

    result = CliRunner().invoke(cli.main, ["chat", "anything vegan?"])

    assert result.exit_code == 0
    assert result.output == "Try the Tofu Bowl\n"
    [request] = server["requests"]
    assert request.url.path == "/api/v1/ai/chat"
    assert json.loads(request.content) == {"message": "anything vegan?"}


def test_chat_reports_a_server_error(server):
    server["handler"] = lambda request: httpx.Response(
        503, json={"detail": "AI assistant is not configured."}
    )

    result = CliRunner().invoke(cli.main, ["chat", "hello"])

    assert result.exit_code == 1
    assert "Assistant error (503)" in result.output


def test_broadcast_posts_the_event(server):
    server["handler"] = lambda request: httpx.Response(
        200, json={"event": "menu:updated", "recipients": 4}
    )

    result = CliRunner().invoke(cli.main, ["broadcast", "menu:updated", '{"id": 3}'])

    assert result.exit_code == 0
    assert "4 connection(s)" in result.output
    [request] = server["requests"]
    assert json.loads(request.content) == {"event": "menu:updated", "data": {"id": 3}}


def test_broadcast_rejects_non_object_data():
    result = CliRunner().invoke(cli.main, ["broadcast", "menu:updated", "[1, 2]"])
    assert result.exit_code == 2


def test_admin_command_without_token(server):
    server["handler"] = lambda request: httpx.Response(401, json={"detail": "Authentication required"})
    result = CliRunner().invoke(cli.main, ["notify", "u42", "Table ready", "Come in!"])
    assert result.exit_code == 1


def test_seed_creates_the_menu_once(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'smartdine.db'}"

    first = CliRunner().invoke(cli.main, ["seed", "--database-url", url])
    assert first.exit_code == 0, first.output
    assert f"Added {len(STARTER_MENU)} dishes" in first.output

    again = CliRunner().invoke(cli.main, ["seed", "--database-url", url])
    assert again.exit_code == 0
    assert "already has every starter dish" in again.output
