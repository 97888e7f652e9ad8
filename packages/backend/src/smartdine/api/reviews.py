"""Review API.

Learn: Routes:
- POST /reviews → post a review (admins get review:new)
- PUT /reviews/:id/respond → management reply (author gets review:response)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from smartdine.db.engine import get_db
from smartdine.realtime.notifier import Notifier, get_notifier
from smartdine.schemas.review import ReviewCreate, ReviewRead, ReviewRespond
from smartdine.services.review_service import (
    DuplicateReviewError,
    ReviewNotAllowedError,
    ReviewNotFoundError,
    ReviewService,
)

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> ReviewService:
    return ReviewService(db=db, notifier=notifier)


@router.post("/reviews", response_model=ReviewRead, status_code=201)
async def create_review(
    body: ReviewCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ReviewService = Depends(_get_service),
):
    try:
        return await svc.create_review(identity.user_id, body)
    except ReviewNotAllowedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateReviewError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/reviews/{review_id}/respond", response_model=ReviewRead)
async def respond_to_review(
    review_id: int,
    body: ReviewRespond,
    admin: CurrentIdentity = Depends(require_admin),
    svc: ReviewService = Depends(_get_service),
):
    """Add or replace the management response to a review."""
    try:
        return await svc.respond(review_id, responder_id=admin.user_id, text=body.response)
    except ReviewNotFoundError:
        raise HTTPException(status_code=404, detail="Review not found")
