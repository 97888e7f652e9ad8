"""Notification API.

Learn: Routes:
- GET /notifications → the caller's inbox (?unread_only=true)
- POST /notifications → send one to a user (admin), pushed live as `notification`
- POST /notifications/:id/read → mark as read
- POST /notifications/broadcast → push a system message to everyone (admin)
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from smartdine.db.engine import get_db
from smartdine.realtime.notifier import Notifier, get_notifier
from smartdine.schemas.notification import (
    BroadcastMessage,
    BroadcastResult,
    NotificationCreate,
    NotificationRead,
)
from smartdine.services.notification_service import (
    NotificationNotFoundError,
    NotificationService,
)

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> NotificationService:
    return NotificationService(db=db, notifier=notifier)


@router.get("/notifications", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_get_service),
):
    return await svc.list_for_user(identity.user_id, unread_only=unread_only, limit=limit)


@router.post("/notifications", response_model=NotificationRead, status_code=201)
async def send_notification(
    body: NotificationCreate,
    _admin: CurrentIdentity = Depends(require_admin),
    svc: NotificationService = Depends(_get_service),
):
    return await svc.send(body)


@router.post("/notifications/broadcast", response_model=BroadcastResult)
async def broadcast(
    body: BroadcastMessage,
    _admin: CurrentIdentity = Depends(require_admin),
    svc: NotificationService = Depends(_get_service),
):
    """Push a system message to every connected client."""
    recipients = svc.broadcast(body.event, body.data)
    return BroadcastResult(event=body.event, recipients=recipients)


@router.post("/notifications/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_get_service),
):
    try:
        return await svc.mark_read(notification_id, identity.user_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
