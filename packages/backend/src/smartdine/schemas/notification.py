"""Pydantic schemas for user notifications and broadcasts."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

NotificationType = Literal["order", "reservation", "promotion", "system", "review"]


class NotificationCreate(BaseModel):
    """Send a notification to one user (admin)."""
    user_id: str = Field(..., min_length=1, max_length=64)
    type: NotificationType = "system"
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    link: Optional[str] = Field(None, max_length=500)
    data: Optional[dict[str, Any]] = None


class NotificationRead(BaseModel):
    """A stored notification, also the payload of the `notification` event."""
    id: int
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    link: Optional[str]
    data: Optional[dict[str, Any]]
    created_at: datetime

    model_config = {"from_attributes": True}


class BroadcastMessage(BaseModel):
    """A system message pushed to every connected client under its own event name."""
    event: str = Field(
        ...,
        min_length=1,
        max_length=64,
        pattern=r"^[a-z0-9][a-z0-9:_\-.]*$",
        description="Event name the clients listen for, e.g. 'menu:updated'",
    )
    data: dict[str, Any] = Field(default_factory=dict)


class BroadcastResult(BaseModel):
    event: str
    recipients: int
