"""SmartDine CLI — poke a running backend from the terminal.

Usage:
    smartdine health                               # Server + dependency status
    smartdine candidates "Llama 3.1 70B"           # Model ids the assistant will try
    smartdine chat "anything vegan and spicy?"     # Stream an assistant answer
    smartdine token u42 --role admin               # Mint a dev token (local secret)
    smartdine seed                                 # Create tables + starter menu
    smartdine broadcast menu:updated '{"id": 3}'   # Push to every client (admin)
    smartdine notify u42 "Table ready" "Come in!"  # Notify one user (admin)

Admin commands read the bearer token from SMARTDINE_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("SMARTDINE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the SmartDine backend."""
    headers = {}
    token = os.environ.get("SMARTDINE_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=60.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail_on_auth(r: httpx.Response) -> None:
    if r.status_code == 401:
        click.secho("Not authenticated. Set SMARTDINE_TOKEN.", fg="red", err=True)
        sys.exit(1)
    if r.status_code == 403:
        click.secho("Admin token required.", fg="red", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="smartdine")
def main():
    """SmartDine — restaurant backend tools."""


# ---------------------------------------------------------------------------
# smartdine health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Show server health and dependency status."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        r = await c.get("/api/v1/health")
        r.raise_for_status()
        data = r.json()

    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"Status: {data.get('status')}", fg=color, bold=True)
    for key in ("version", "database", "redis", "websocket_connections"):
        click.echo(f"  {key:22s} {data.get(key, '—')}")


# ---------------------------------------------------------------------------
# smartdine candidates
# ---------------------------------------------------------------------------


@main.command()
@click.argument("model_name")
def candidates(model_name: str):
    """List the model ids tried for MODEL_NAME, in order (no network)."""
    from smartdine.ai.candidates import generate_candidates

    ids = generate_candidates(model_name)
    if not ids:
        click.secho("(no candidates)", fg="yellow")
        return
    for i, model_id in enumerate(ids, 1):
        click.echo(f"  {i}. {model_id}")


# ---------------------------------------------------------------------------
# smartdine chat
# ---------------------------------------------------------------------------


@main.command()
@click.argument("message")
def chat(message: str):
    """Ask the restaurant assistant and stream the answer."""
    _run(_chat_impl(message))


async def _chat_impl(message: str):
    async with _client() as c:
        async with c.stream("POST", "/api/v1/ai/chat", json={"message": message}) as r:
            if r.status_code >= 400:
                await r.aread()
                detail = r.json().get("detail", r.text)
                click.secho(f"Assistant error ({r.status_code}): {detail}", fg="red")
                sys.exit(1)

            async for line in r.aiter_lines():
                if not line.startswith("data: "):
                    continue
                payload = line[len("data: "):]
                if payload == "[DONE]":
                    break
                click.echo(json.loads(payload).get("content", ""), nl=False)
    click.echo()


# ---------------------------------------------------------------------------
# smartdine token
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.option("--role", "-r", default="customer", type=click.Choice(["customer", "admin"]))
@click.option("--minutes", "-m", default=None, type=int, help="Lifetime in minutes")
def token(user_id: str, role: str, minutes: Optional[int]):
    """Mint an access token with the local SMARTDINE_JWT_SECRET (development)."""
    from smartdine.auth.jwt import create_access_token

    click.echo(create_access_token(user_id, role=role, expires_minutes=minutes))


# ---------------------------------------------------------------------------
# smartdine seed
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--database-url",
    default=None,
    help="Defaults to SMARTDINE_DATABASE_URL",
)
def seed(database_url: Optional[str]):
    """Create the tables and add the starter menu (talks to the database directly)."""
    from smartdine.config import settings

    added = _run(_seed_impl(database_url or settings.database_url))
    if added:
        click.secho(f"Added {added} dishes to the menu", fg="green")
    else:
        click.echo("Menu already has every starter dish")


async def _seed_impl(database_url: str) -> int:
    from smartdine.db.engine import build_engine
    from smartdine.db.seed import seed_database

    engine = build_engine(database_url)
    try:
        return await seed_database(engine)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# smartdine broadcast
# ---------------------------------------------------------------------------


@main.command()
@click.argument("event")
@click.argument("data", required=False, default="{}")
def broadcast(event: str, data: str):
    """Push EVENT with JSON DATA to every connected client (admin)."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"DATA must be JSON: {e}")
    if not isinstance(payload, dict):
        raise click.BadParameter("DATA must be a JSON object")
    _run(_broadcast_impl(event, payload))


async def _broadcast_impl(event: str, payload: dict):
    async with _client() as c:
        r = await c.post(
            "/api/v1/notifications/broadcast",
            json={"event": event, "data": payload},
        )
        _fail_on_auth(r)
        r.raise_for_status()
        result = r.json()
    click.secho(
        f"Broadcast {result['event']} → {result['recipients']} connection(s)",
        fg="green",
    )


# ---------------------------------------------------------------------------
# smartdine notify
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.argument("title")
@click.argument("message")
@click.option(
    "--type", "-t", "kind", default="system",
    type=click.Choice(["order", "reservation", "promotion", "system", "review"]),
)
@click.option("--link", "-l", default=None, help="Link shown with the notification")
def notify(user_id: str, title: str, message: str, kind: str, link: Optional[str]):
    """Send a notification to one user (admin)."""
    _run(_notify_impl(user_id, title, message, kind, link))


async def _notify_impl(
    user_id: str, title: str, message: str, kind: str, link: Optional[str]
):
    async with _client() as c:
        body = {"user_id": user_id, "type": kind, "title": title, "message": message}
        if link:
            body["link"] = link
        r = await c.post("/api/v1/notifications", json=body)
        _fail_on_auth(r)
        r.raise_for_status()
        notification = r.json()
    click.secho(f"Notification #{notification['id']} sent to {user_id}", fg="green")
    click.echo(_pretty_json(notification))
