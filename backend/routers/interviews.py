# backend/routers/interviews.py

import logging

from fastapi import APIRouter, Depends, Query

from backend.auth import AuthenticatedUser, get_current_user
from backend.dependencies import get_interview_service
from backend.errors import AccessDeniedError
from backend.responses import success_response
from backend.services.conversation_store import DEFAULT_CONVERSATION_LIMIT
from backend.services.interview_service import InterviewService
from backend.validation import InterviewMessageRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/message")
async def send_message(
    payload: InterviewMessageRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    interviews: InterviewService = Depends(get_interview_service),
):
    """Generates the persona's reply to one message and stores the exchange."""
    try:
        outcome = await interviews.process_message(
            user.uid,
            payload.persona_id,
            payload.message,
            [turn.model_dump() for turn in payload.history],
        )
    except AccessDeniedError as e:
        raise AccessDeniedError("You can only chat with your own personas") from e

    data = {"message": outcome.reply}
    if outcome.persisted:
        data["conversationId"] = outcome.conversation_id
    return success_response(data)


@router.get("/conversations/{persona_id}")
async def list_conversations(
    persona_id: str,
    limit: int = Query(DEFAULT_CONVERSATION_LIMIT, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
    interviews: InterviewService = Depends(get_interview_service),
):
    logger.info("[Interviews] Fetching conversations for persona %s by user %s", persona_id, user.uid)
    conversations = await interviews.get_conversations(user.uid, persona_id, limit)
    return success_response({"conversations": conversations})
