"""Review service — public reviews and management responses.

Learn: A review tied to an order is only accepted from the order's
owner once it was delivered, and a dish can only be reviewed if it was
on that order. Each (user, dish, order) can be reviewed once.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.db.models import Order, Review, utcnow
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.review import ReviewCreate

logger = structlog.get_logger()


class ReviewNotFoundError(Exception):
    """Raised when a review is not found."""


class ReviewNotAllowedError(Exception):
    """Raised when reviewing something the user hasn't received."""


class DuplicateReviewError(Exception):
    """Raised when the user already reviewed this dish on this order."""


class ReviewService:
    def __init__(self, db: AsyncSession, notifier: Notifier):
        self.db = db
        self.notifier = notifier

    async def create_review(self, user_id: str, body: ReviewCreate) -> Review:
        if body.menu_item_id is not None and body.order_id is None:
            raise ReviewNotAllowedError("You can only review items you have ordered")
        if body.order_id is not None:
            await self._check_order(user_id, body.order_id, body.menu_item_id)

        q = select(Review.id).where(
            Review.user_id == user_id,
            Review.menu_item_id == body.menu_item_id,
            Review.order_id == body.order_id,
        )
        if body.order_id is not None and (await self.db.execute(q)).first():
            raise DuplicateReviewError("You have already reviewed this item")

        review = Review(
            user_id=user_id,
            menu_item_id=body.menu_item_id,
            order_id=body.order_id,
            rating=body.rating,
            title=body.title,
            comment=body.comment,
        )
        self.db.add(review)
        await self.db.commit()
        await self.db.refresh(review)

        logger.info("review.created", review_id=review.id, rating=review.rating)
        self.notifier.new_review(review)
        return review

    async def _check_order(
        self, user_id: str, order_id: int, menu_item_id: Optional[int]
    ) -> None:
        order = await self.db.get(Order, order_id)
        if order is None or order.user_id != user_id or order.status != "delivered":
            raise ReviewNotAllowedError("You can only review items you have ordered")
        if menu_item_id is not None and not any(
            line.get("menu_item_id") == menu_item_id for line in order.items
        ):
            raise ReviewNotAllowedError("You can only review items you have ordered")

    async def get_review(self, review_id: int) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        return review

    async def respond(self, review_id: int, *, responder_id: str, text: str) -> Review:
        """Attach (or replace) the management response and tell the author."""
        review = await self.get_review(review_id)
        review.response_text = text
        review.responded_by = responder_id
        review.responded_at = utcnow()
        await self.db.commit()
        await self.db.refresh(review)

        logger.info("review.responded", review_id=review.id, responder=responder_id)
        self.notifier.review_responded(review)
        return review
