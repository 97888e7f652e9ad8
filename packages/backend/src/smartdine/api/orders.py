"""Order API.

Learn: Routes:
- POST /orders → place an order (admins get order:new)
- GET /orders → the caller's orders, newest first
- GET /orders/all → every order, optional ?status= (admin)
- GET /orders/:id → one order (owner or admin)
- PATCH /orders/:id/status → move through the kitchen (owner gets order:update)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from smartdine.db.engine import get_db
from smartdine.realtime.notifier import Notifier, get_notifier
from smartdine.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from smartdine.services.order_service import (
    InvalidStatusError,
    MenuItemUnavailableError,
    OrderNotFoundError,
    OrderService,
)

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> OrderService:
    return OrderService(db=db, notifier=notifier)


@router.post("/orders", response_model=OrderRead, status_code=201)
async def place_order(
    body: OrderCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: OrderService = Depends(_get_service),
):
    """Place an order for the signed-in user."""
    try:
        return await svc.place_order(identity.user_id, body)
    except MenuItemUnavailableError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders", response_model=list[OrderRead])
async def list_my_orders(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: OrderService = Depends(_get_service),
):
    return await svc.list_orders(user_id=identity.user_id)


@router.get("/orders/all", response_model=list[OrderRead])
async def list_all_orders(
    status: Optional[str] = Query(None),
    _admin: CurrentIdentity = Depends(require_admin),
    svc: OrderService = Depends(_get_service),
):
    return await svc.list_orders(status=status)


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: OrderService = Depends(_get_service),
):
    try:
        order = await svc.get_order(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    if not identity.is_admin and order.user_id != identity.user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return order


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    _admin: CurrentIdentity = Depends(require_admin),
    svc: OrderService = Depends(_get_service),
):
    """Update an order's status and notify its owner."""
    try:
        return await svc.update_status(order_id, body.status)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidStatusError as e:
        raise HTTPException(status_code=409, detail=str(e))
