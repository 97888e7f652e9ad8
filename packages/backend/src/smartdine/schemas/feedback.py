"""Pydantic schemas for private order feedback."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FeedbackCreate(BaseModel):
    order_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)


class FeedbackRead(BaseModel):
    id: int
    user_id: str
    order_id: Optional[int]
    rating: int
    comment: str
    sentiment: str
    sentiment_score: float
    created_at: datetime

    model_config = {"from_attributes": True}
