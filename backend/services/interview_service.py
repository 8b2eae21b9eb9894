# backend/services/interview_service.py

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from backend.services.conversation_store import DEFAULT_CONVERSATION_LIMIT, ConversationStore
from backend.services.llm_service import TextGenerator, build_interview_prompt
from backend.services.ownership import ensure_owner
from backend.services.persona_service import PersonaService

logger = logging.getLogger(__name__)


class InterviewOutcome(BaseModel):
    """
    Result of one interview turn. Generation and persistence are reported
    separately: a reply can exist while its transcript failed to save.
    """

    reply: str
    conversation_id: Optional[str] = None
    persistence_error: Optional[str] = None

    @property
    def persisted(self) -> bool:
        return self.conversation_id is not None


class InterviewService:
    def __init__(self, persona_service: PersonaService, conversation_store: ConversationStore, generator: TextGenerator):
        self.persona_service = persona_service
        self.conversation_store = conversation_store
        self.generator = generator

    async def process_message(
        self,
        user_id: str,
        persona_id: str,
        message: str,
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> InterviewOutcome:
        persona = ensure_owner(await self.persona_service.get_persona_by_id(persona_id), user_id, "Persona")

        logger.info("[InterviewService] Processing message for persona %s (%s)", persona.get("name"), persona_id)
        prompt = build_interview_prompt(persona, history or [], message)
        reply = await self.generator.generate(prompt)

        outcome = InterviewOutcome(reply=reply)
        try:
            outcome.conversation_id = await self.conversation_store.save_exchange(user_id, persona_id, message, reply)
            logger.info("[InterviewService] Conversation saved with ID: %s", outcome.conversation_id)
        except Exception as e:
            # The reply is still returned; only the transcript is lost.
            logger.warning(
                "[InterviewService] Failed to save conversation for user %s and persona %s: %s",
                user_id, persona_id, e, exc_info=e,
            )
            outcome.persistence_error = str(e) or type(e).__name__
        return outcome

    async def get_conversations(
        self, user_id: str, persona_id: str, limit: int = DEFAULT_CONVERSATION_LIMIT
    ) -> List[Dict[str, Any]]:
        return await self.conversation_store.list_conversations(user_id, persona_id, limit)
