"""Restaurant assistant — the three AI tasks on top of the fallback client.

Learn: Failure policy differs per task:
- chat raises (the route turns it into a JSON error or an apology frame)
- recommendations return [] so the caller can pad with popular dishes
- sentiment returns neutral/0 so feedback is still saved
"""

from typing import Any, Optional

import structlog
from fastapi import Depends

from smartdine.ai import prompts
from smartdine.ai.errors import AssistantUnavailableError
from smartdine.ai.fallback import ModelFallbackClient
from smartdine.ai.provider import get_completion_client
from smartdine.ai.streaming import PrimedStream, prime_stream

logger = structlog.get_logger()


def _message_text(completion: Any) -> str:
    try:
        return completion.choices[0].message.content or ""
    except (AttributeError, IndexError):
        return ""


class RestaurantAssistant:
    def __init__(self, client: Optional[ModelFallbackClient]):
        self.client = client

    @property
    def available(self) -> bool:
        return self.client is not None

    async def open_chat_stream(
        self, message: str, menu_items: list[Any], reservations_today: int
    ) -> PrimedStream:
        """Start a streamed answer and read up to its first token.

        Raises AssistantUnavailableError, NoCandidateSucceeded, or the
        provider's own error, all before any byte reaches the client.
        """
        if self.client is None:
            raise AssistantUnavailableError(
                "AI assistant is not configured. Set SMARTDINE_GROQ_API_KEY "
                "and SMARTDINE_GROQ_MODEL."
            )
        stream = await self.client.create(
            messages=prompts.chat_messages(message, menu_items, reservations_today),
            **prompts.CHAT_PARAMS,
        )
        return await prime_stream(stream)

    async def recommend(self, history: list[str], menu_items: list[Any]) -> list[str]:
        """Up to five dish names; [] when the assistant can't answer."""
        if self.client is None or not menu_items:
            return []
        try:
            completion = await self.client.create(
                messages=prompts.recommendation_messages(history, menu_items),
                **prompts.RECOMMEND_PARAMS,
            )
        except Exception as e:
            logger.error("ai.recommend_failed", error=str(e))
            return []
        return prompts.parse_recommendations(_message_text(completion) or "[]")

    async def analyze_sentiment(self, comment: str) -> tuple[str, float]:
        if self.client is None:
            return "neutral", 0.0
        try:
            completion = await self.client.create(
                messages=prompts.sentiment_messages(comment),
                **prompts.SENTIMENT_PARAMS,
            )
        except Exception as e:
            logger.error("ai.sentiment_failed", error=str(e))
            return "neutral", 0.0
        return prompts.parse_sentiment(_message_text(completion))


def get_assistant(
    client: Optional[ModelFallbackClient] = Depends(get_completion_client),
) -> RestaurantAssistant:
    return RestaurantAssistant(client)
