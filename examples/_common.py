"""
Shared helpers for SmartDine examples.

Handles health checks and tokens so each example can focus on its
specific workflow. Tokens are minted with the local JWT secret, which
only works against a development backend sharing SMARTDINE_JWT_SECRET.
"""

import os
import sys

import httpx

from smartdine.auth.jwt import create_access_token

HOST = os.environ.get("SMARTDINE_API_URL", "http://localhost:8000").rstrip("/")
BASE = f"{HOST}/api/v1"
WS_URL = HOST.replace("http", "ws", 1) + "/ws"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  uvicorn smartdine.main:app --reload --port 8000")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Redis:    {health['redis']}")
    print(f"  Sockets:  {health['websocket_connections']}")

    if health["database"] != "ok":
        print("\nERROR: Database is not connected. Check SMARTDINE_DATABASE_URL.")
        sys.exit(1)


def create_client(user_id: str, role: str = "customer") -> httpx.Client:
    """An httpx Client acting as `user_id` with the given role."""
    token = create_access_token(user_id, role=role)
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )


def ws_url(user_id: str, role: str = "customer") -> str:
    return f"{WS_URL}?token={create_access_token(user_id, role=role)}"
