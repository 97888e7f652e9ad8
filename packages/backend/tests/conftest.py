"""Test fixtures — in-memory database, switchable identity, test registry.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite database (aiosqlite +
   StaticPool, schema created from the ORM models)
2. get_db is overridden to hand out sessions on that database
3. get_current_user is overridden to return `auth.identity`, which a
   test can flip between a customer and an admin
4. app.state.registry is a fresh ChannelRegistry, so events emitted by
   the services can be observed through FakeConnections
5. The completion client is overridden (None = AI not configured)

ASGITransport doesn't run the lifespan, so none of this touches Redis.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import FakeConnection, LazyDatabase
from smartdine.ai.provider import get_completion_client
from smartdine.auth.dependencies import CurrentIdentity, get_current_user
from smartdine.db.engine import get_db
from smartdine.main import app
from smartdine.realtime.channels import ADMIN as ADMIN_ADDRESS, ChannelAddress, ChannelRegistry

CUSTOMER = CurrentIdentity(user_id="u1", role="customer")
OTHER_CUSTOMER = CurrentIdentity(user_id="u2", role="customer")
ADMIN = CurrentIdentity(user_id="admin-1", role="admin")


class AuthState:
    def __init__(self):
        self.identity = CUSTOMER

    def use(self, identity: CurrentIdentity) -> None:
        self.identity = identity


class CompletionState:
    def __init__(self):
        self.client = None


@pytest.fixture()
def auth():
    return AuthState()


@pytest.fixture()
def ai():
    return CompletionState()


def install_overrides(database: LazyDatabase, auth: AuthState, ai: CompletionState) -> None:
    async def override_get_db():
        factory = await database.factory()
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: auth.identity
    app.dependency_overrides[get_completion_client] = lambda: ai.client


@pytest_asyncio.fixture()
async def db():
    database = LazyDatabase()
    await database.factory()
    yield database
    await database.dispose()


@pytest.fixture()
def registry():
    reg = ChannelRegistry()
    app.state.registry = reg
    yield reg
    if getattr(app.state, "registry", None) is reg:
        del app.state.registry


@pytest.fixture()
def listeners(registry):
    """One open admin dashboard plus a tab for each customer, keyed by name."""
    conns = {
        "admin": FakeConnection("admin"),
        "u1": FakeConnection("u1"),
        "u2": FakeConnection("u2"),
    }
    registry.join(conns["admin"], ADMIN_ADDRESS)
    registry.join(conns["u1"], ChannelAddress.user("u1"))
    registry.join(conns["u2"], ChannelAddress.user("u2"))
    return conns


@pytest_asyncio.fixture()
async def client(db, auth, ai, registry):
    """HTTP client with the app's get_db, auth and AI client overridden."""
    install_overrides(db, auth, ai)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(db, ai):
    """HTTP client WITHOUT the auth override — for real JWT flows."""

    async def override_get_db():
        factory = await db.factory()
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: ai.client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def live_app(auth, ai):
    """The app under a Starlette TestClient, lifespan included.

    Learn: WebSockets need the real lifespan (it builds the registry and
    the ConnectionManager). Everything runs in the TestClient's portal
    loop, so the database is created lazily there too; use
    `tc.portal.call(...)` to seed it or to emit events from the test.
    """
    from starlette.testclient import TestClient

    database = LazyDatabase()
    install_overrides(database, auth, ai)
    with TestClient(app) as tc:
        tc.database = database
        yield tc
        tc.portal.call(database.dispose)
    app.dependency_overrides.clear()
