"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
its dependencies are reachable. Redis is optional (rate limiting only),
so "disabled" still counts as healthy; a failing Redis does not.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine import __version__
from smartdine.db.engine import get_db

router = APIRouter()


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Check Redis
    from smartdine.db.redis import get_redis

    try:
        r = get_redis()
    except RuntimeError:
        checks["redis"] = "disabled"
    else:
        try:
            await r.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    status = "healthy" if (
        checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")
    ) else "degraded"

    manager = getattr(request.app.state, "connections", None)
    return {
        "status": status,
        **checks,
        "websocket_connections": len(manager) if manager is not None else 0,
    }
