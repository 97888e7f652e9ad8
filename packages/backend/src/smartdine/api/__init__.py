"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Admin-only routes add
require_admin on the handler itself. Health, the menu and the assistant are open
(the assistant personalizes when a token is present).
"""

from fastapi import APIRouter, Depends

from smartdine.api.ai import router as ai_router
from smartdine.api.feedback import router as feedback_router
from smartdine.api.health import router as health_router
from smartdine.api.menu import router as menu_router
from smartdine.api.notifications import router as notifications_router
from smartdine.api.orders import router as orders_router
from smartdine.api.reservations import router as reservations_router
from smartdine.api.reviews import router as reviews_router
from smartdine.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(menu_router, tags=["menu"])
api_router.include_router(ai_router, tags=["ai"])

# Protected routes: require valid JWT
api_router.include_router(orders_router, tags=["orders"], dependencies=_auth)
api_router.include_router(reservations_router, tags=["reservations"], dependencies=_auth)
api_router.include_router(reviews_router, tags=["reviews"], dependencies=_auth)
api_router.include_router(feedback_router, tags=["feedback"], dependencies=_auth)
api_router.include_router(notifications_router, tags=["notifications"], dependencies=_auth)
