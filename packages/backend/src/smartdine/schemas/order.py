"""Pydantic schemas for orders.

Learn: OrderRead is both the REST response and the payload of the
order:new / order:update real-time events, so the dashboard renders
pushed orders with the same code it uses for fetched ones.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

ORDER_STATUSES = ("pending", "preparing", "ready", "delivered", "cancelled")
ORDER_TYPES = ("delivery", "pickup", "dine-in")


class OrderLineCreate(BaseModel):
    """One line of a new order."""
    menu_item_id: int = Field(..., description="Menu item ID")
    quantity: int = Field(1, ge=1, le=50)


class OrderCreate(BaseModel):
    """Place an order."""
    items: list[OrderLineCreate] = Field(..., min_length=1)
    order_type: Literal["delivery", "pickup", "dine-in"] = "delivery"
    delivery_address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    special_instructions: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_address_for_delivery(self):
        if self.order_type == "delivery" and not self.delivery_address:
            raise ValueError("Delivery address is required for delivery orders")
        return self


class OrderStatusUpdate(BaseModel):
    """Move an order to a new status (admin)."""
    status: Literal["pending", "preparing", "ready", "delivered", "cancelled"]


class OrderLine(BaseModel):
    menu_item_id: int
    name: str
    price: float
    quantity: int


class OrderRead(BaseModel):
    """An order as returned by the API and pushed over WebSockets."""
    id: int
    user_id: str
    items: list[OrderLine]
    total_amount: float
    status: str
    order_type: str
    delivery_address: Optional[str]
    phone: Optional[str]
    special_instructions: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
