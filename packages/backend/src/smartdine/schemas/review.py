"""Pydantic schemas for reviews and management responses.

Learn: Reviews follow a small workflow:
1. Customer posts a review (status=pending) → admins get review:new
2. Management replies → the author gets review:response
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """Post a review."""
    menu_item_id: Optional[int] = Field(None, description="Dish being reviewed")
    order_id: Optional[int] = Field(None, description="Order the review refers to")
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=100)
    comment: str = Field(..., min_length=1, max_length=1000)


class ReviewRespond(BaseModel):
    """Management reply to a review."""
    response: str = Field(..., min_length=1, max_length=1000)


class ReviewRead(BaseModel):
    """A review with its management response, if any."""
    id: int
    user_id: str
    menu_item_id: Optional[int]
    order_id: Optional[int]
    rating: int
    title: str
    comment: str
    status: str
    response_text: Optional[str]
    responded_by: Optional[str]
    responded_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}
