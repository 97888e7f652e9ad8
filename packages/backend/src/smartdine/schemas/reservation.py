"""Pydantic schemas for table reservations."""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field

RESERVATION_STATUSES = ("pending", "approved", "rejected", "completed", "cancelled")


class ReservationCreate(BaseModel):
    """Book a table."""
    date: dt.date
    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM")
    guests: int = Field(..., ge=1, le=20)
    event_type: Literal["regular", "birthday", "corporate", "anniversary", "other"] = "regular"
    special_requests: Optional[str] = Field(None, max_length=1000)
    contact_phone: str = Field(..., min_length=3, max_length=30)
    contact_email: str = Field(..., min_length=3, max_length=200)


class ReservationStatusUpdate(BaseModel):
    """Approve, reject, complete or cancel a reservation (admin)."""
    status: Literal["pending", "approved", "rejected", "completed", "cancelled"]


class ReservationRead(BaseModel):
    """A reservation as returned by the API and pushed over WebSockets."""
    id: int
    user_id: str
    date: dt.date
    time: str
    guests: int
    event_type: str
    special_requests: Optional[str]
    status: str
    contact_phone: str
    contact_email: str
    created_at: dt.datetime

    model_config = {"from_attributes": True}
