"""Restaurant assistant API.

Learn: Routes:
- POST /ai/chat → streamed answer (text/event-stream)
- POST /ai/recommend → up to five dishes

Both are open to anonymous visitors; a signed-in user gets
recommendations based on their order history. Both sit behind the
stricter AI rate-limit bucket.

Chat error handling happens in two places. Anything that fails before
the first token (no key, no usable model, provider rejects the request)
is raised here as a JSON error. Anything after that is the relay's job.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.ai.assistant import RestaurantAssistant, get_assistant
from smartdine.ai.errors import AssistantUnavailableError, NoCandidateSucceeded
from smartdine.ai.streaming import SSE_HEADERS, SSE_MEDIA_TYPE, relay
from smartdine.auth.dependencies import CurrentIdentity, get_current_user_optional
from smartdine.db.engine import get_db
from smartdine.schemas.ai import ChatRequest, RecommendationsRead
from smartdine.services.menu_service import MenuService
from smartdine.services.reservation_service import ReservationService

logger = structlog.get_logger()
router = APIRouter()


@router.post("/ai/chat")
async def chat(
    body: ChatRequest,
    db: AsyncSession = Depends(get_db),
    assistant: RestaurantAssistant = Depends(get_assistant),
):
    """Stream the assistant's answer as server-sent events."""
    menu = await MenuService(db).list_available()
    reservations_today = await ReservationService(db).count_for_day()

    try:
        primed = await assistant.open_chat_stream(body.message, menu, reservations_today)
    except AssistantUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except NoCandidateSucceeded as e:
        logger.error("ai.chat_no_model", tried=e.tried, error=str(e.last_error))
        raise HTTPException(
            status_code=502,
            detail="AI model not found or inaccessible. Set SMARTDINE_GROQ_MODEL "
            "to a model you have access to.",
        )
    except Exception as e:
        logger.error("ai.chat_failed", error=str(e))
        raise HTTPException(
            status_code=502,
            detail=str(e) or "Failed to get AI response",
        )

    return StreamingResponse(
        relay(primed),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


@router.post("/ai/recommend", response_model=RecommendationsRead)
async def recommend(
    db: AsyncSession = Depends(get_db),
    assistant: RestaurantAssistant = Depends(get_assistant),
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
):
    """Recommend up to five dishes (AI picks padded with popular dishes)."""
    items, source = await MenuService(db).recommend(
        identity.user_id if identity else None, assistant
    )
    return RecommendationsRead(recommendations=items, source=source)
