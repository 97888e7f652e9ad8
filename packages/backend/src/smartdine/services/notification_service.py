"""Notification service — a user's inbox plus the live push.

Learn: send() writes the Notification row first, then pushes it as a
`notification` event. A user who was offline still finds it in their
inbox; one who was online sees it at once.
"""

from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.db.models import Notification
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.notification import NotificationCreate

logger = structlog.get_logger()


class NotificationNotFoundError(Exception):
    """Raised when a notification is not found (or isn't the caller's)."""


class NotificationService:
    def __init__(self, db: AsyncSession, notifier: Notifier):
        self.db = db
        self.notifier = notifier

    async def send(self, body: NotificationCreate) -> Notification:
        notification = Notification(
            user_id=body.user_id,
            type=body.type,
            title=body.title,
            message=body.message,
            link=body.link,
            data=body.data,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)

        delivered = self.notifier.notify(notification)
        logger.info(
            "notification.sent",
            notification_id=notification.id,
            user_id=body.user_id,
            live_recipients=delivered,
        )
        return notification

    async def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        q = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        if unread_only:
            q = q.where(Notification.read.is_(False))
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int, user_id: str) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        notification.read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    def broadcast(self, event: str, data: Optional[dict[str, Any]] = None) -> int:
        """Push a system message to every open connection. Not stored."""
        count = self.notifier.broadcast(event, data)
        logger.info("notification.broadcast", event_name=event, recipients=count)
        return count
