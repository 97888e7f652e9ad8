"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, the real-time
registry, the database engine). Middleware, CORS, and routers are all
registered here.

The ChannelRegistry and ConnectionManager are created once per process
in the lifespan and kept on app.state. Handlers reach them through
dependencies (get_notifier) or app.state, never through a module global,
so each test can build its own.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartdine import __version__
from smartdine.api import api_router
from smartdine.config import settings
from smartdine.realtime.channels import ChannelRegistry
from smartdine.realtime.connections import ConnectionManager

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "smartdine.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    # Redis is optional: without it requests are simply not rate limited
    from smartdine.db.redis import close_redis, init_redis
    try:
        await init_redis()
        logger.info("smartdine.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("smartdine.redis_unavailable", error=str(e))

    # Real-time notification layer
    registry = ChannelRegistry()
    app.state.registry = registry
    app.state.connections = ConnectionManager(
        registry, outbox_size=settings.ws_outbox_size
    )
    logger.info("smartdine.realtime_ready")

    yield

    # Shutdown
    logger.info("smartdine.shutdown", open_connections=len(app.state.connections))

    await app.state.connections.close_all()
    del app.state.connections
    del app.state.registry

    await close_redis()

    from smartdine.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="SmartDine",
        description="Restaurant ordering, reservations and live notifications, "
        "with an AI menu assistant",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from smartdine.middleware.rate_limit import RateLimitMiddleware
    from smartdine.middleware.request_id import RequestIdMiddleware
    from smartdine.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        ai_rpm=settings.rate_limit_ai_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route (real-time notifications)
    from smartdine.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: smartdine.main:app)
app = create_app()
