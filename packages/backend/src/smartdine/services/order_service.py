"""Order service — placing orders and moving them through the kitchen.

Learn: Order lifecycle:
    pending → preparing → ready → delivered
          ↘ cancelled (from any non-final state)

Side effects of place_order, in order:
1. Every line is checked against the menu (must exist and be available)
2. Prices come from the menu, not the client
3. Each dish's popularity is bumped by the ordered quantity
4. After commit, admins get order:new

update_status pushes order:update to the order's owner only.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.db.models import MenuItem, Order
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.order import OrderCreate

logger = structlog.get_logger()

FINAL_STATUSES = {"delivered", "cancelled"}


class OrderNotFoundError(Exception):
    """Raised when an order is not found."""


class MenuItemUnavailableError(Exception):
    """Raised when an ordered dish doesn't exist or is switched off."""


class InvalidStatusError(Exception):
    """Raised when moving an order out of a final status."""


class OrderService:
    def __init__(self, db: AsyncSession, notifier: Notifier):
        self.db = db
        self.notifier = notifier

    # ─── Place ────────────────────────────────────────────

    async def place_order(self, user_id: str, body: OrderCreate) -> Order:
        lines = []
        total = 0.0
        for line in body.items:
            item = await self.db.get(MenuItem, line.menu_item_id)
            if item is None or not item.available:
                name = item.name if item else f"#{line.menu_item_id}"
                raise MenuItemUnavailableError(f"Item {name} is not available")
            lines.append(
                {
                    "menu_item_id": item.id,
                    "name": item.name,
                    "price": item.price,
                    "quantity": line.quantity,
                }
            )
            total += item.price * line.quantity
            item.popularity += line.quantity

        order = Order(
            user_id=user_id,
            items=lines,
            total_amount=round(total, 2),
            order_type=body.order_type,
            delivery_address=(
                body.delivery_address if body.order_type == "delivery" else None
            ),
            phone=body.phone,
            special_instructions=body.special_instructions,
        )
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)

        logger.info(
            "order.placed",
            order_id=order.id,
            user_id=user_id,
            total=order.total_amount,
        )
        self.notifier.new_order(order)
        return order

    # ─── Read ─────────────────────────────────────────────

    async def get_order(self, order_id: int) -> Order:
        order = await self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        return order

    async def list_orders(
        self, user_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[Order]:
        """Newest first. user_id=None lists everyone's (admin view)."""
        q = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        if user_id is not None:
            q = q.where(Order.user_id == user_id)
        if status:
            q = q.where(Order.status == status)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    # ─── Status ───────────────────────────────────────────

    async def update_status(self, order_id: int, status: str) -> Order:
        order = await self.get_order(order_id)
        if order.status in FINAL_STATUSES and status != order.status:
            raise InvalidStatusError(
                f"Order {order_id} is already {order.status}"
            )

        previous = order.status
        order.status = status
        await self.db.commit()
        await self.db.refresh(order)

        logger.info(
            "order.status_changed",
            order_id=order.id,
            previous=previous,
            status=status,
        )
        self.notifier.order_updated(order)
        return order
