"""Feedback service — private comments scored by the assistant."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.ai.assistant import RestaurantAssistant
from smartdine.db.models import Feedback, Order
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.feedback import FeedbackCreate
from smartdine.services.order_service import OrderNotFoundError

logger = structlog.get_logger()


class FeedbackService:
    def __init__(
        self,
        db: AsyncSession,
        notifier: Notifier,
        assistant: RestaurantAssistant,
    ):
        self.db = db
        self.notifier = notifier
        self.assistant = assistant

    async def submit(self, user_id: str, body: FeedbackCreate) -> Feedback:
        """Score the comment, store it, then tell admins (feedback:new).

        Learn: Sentiment never blocks submission. If the assistant is
        down the feedback is saved as neutral/0.
        """
        if body.order_id is not None:
            order = await self.db.get(Order, body.order_id)
            if order is None or order.user_id != user_id:
                raise OrderNotFoundError(f"Order {body.order_id} not found")

        sentiment, score = await self.assistant.analyze_sentiment(body.comment)

        feedback = Feedback(
            user_id=user_id,
            order_id=body.order_id,
            rating=body.rating,
            comment=body.comment,
            sentiment=sentiment,
            sentiment_score=score,
        )
        self.db.add(feedback)
        await self.db.commit()
        await self.db.refresh(feedback)

        logger.info(
            "feedback.submitted",
            feedback_id=feedback.id,
            sentiment=sentiment,
            score=score,
        )
        self.notifier.new_feedback(feedback)
        return feedback
