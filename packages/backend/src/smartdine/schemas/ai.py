"""Pydantic schemas for the restaurant assistant endpoints."""

from pydantic import BaseModel, Field

from smartdine.schemas.menu import MenuItemRead


class ChatRequest(BaseModel):
    """One user turn sent to the streaming chat endpoint."""
    message: str = Field(..., min_length=1, max_length=2000)


class RecommendationsRead(BaseModel):
    recommendations: list[MenuItemRead]
    source: str = Field(..., description="'ai' when the assistant picked, 'popular' on fallback")


class SentimentRead(BaseModel):
    sentiment: str = "neutral"
    score: float = 0.0
