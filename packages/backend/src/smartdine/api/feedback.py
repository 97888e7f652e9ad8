"""Feedback API — POST /feedback stores a sentiment-scored comment."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.ai.assistant import RestaurantAssistant, get_assistant
from smartdine.auth.dependencies import CurrentIdentity, get_current_user
from smartdine.db.engine import get_db
from smartdine.realtime.notifier import Notifier, get_notifier
from smartdine.schemas.feedback import FeedbackCreate, FeedbackRead
from smartdine.services.feedback_service import FeedbackService
from smartdine.services.order_service import OrderNotFoundError

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    assistant: RestaurantAssistant = Depends(get_assistant),
) -> FeedbackService:
    return FeedbackService(db=db, notifier=notifier, assistant=assistant)


@router.post("/feedback", response_model=FeedbackRead, status_code=201)
async def submit_feedback(
    body: FeedbackCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: FeedbackService = Depends(_get_service),
):
    try:
        return await svc.submit(identity.user_id, body)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
