# backend/services/conversation_store.py

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from google.cloud.firestore import SERVER_TIMESTAMP, Query

from backend.errors import raise_for_missing_index
from backend.services.persona_service import snapshot_to_dict

logger = logging.getLogger(__name__)

CONVERSATIONS_COLLECTION = "conversations"
DEFAULT_CONVERSATION_LIMIT = 50


class ConversationStore:
    """Write-once conversation documents: one user turn plus one assistant turn each."""

    def __init__(self, db):
        if db is None:
            raise ValueError("Firestore database client 'db' is required.")
        self.collection = db.collection(CONVERSATIONS_COLLECTION)

    async def save_exchange(self, user_id: str, persona_id: str, user_message: str, reply: str) -> str:
        # Server timestamps are not allowed inside arrays, so turns get ours.
        now = datetime.now(timezone.utc)
        conversation_data = {
            "userId": user_id,
            "personaId": persona_id,
            "messages": [
                {"role": "user", "content": user_message, "timestamp": now},
                {"role": "assistant", "content": reply, "timestamp": now},
            ],
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        _, doc_ref = await asyncio.to_thread(self.collection.add, conversation_data)
        return doc_ref.id

    async def list_conversations(
        self, user_id: str, persona_id: str, limit: int = DEFAULT_CONVERSATION_LIMIT
    ) -> List[Dict[str, Any]]:
        """Conversations of one user with one persona, newest first, at most `limit`."""
        query = (
            self.collection.where("userId", "==", user_id)
            .where("personaId", "==", persona_id)
            .order_by("createdAt", direction=Query.DESCENDING)
            .limit(limit)
        )

        def _get_docs_sync(q):
            return [snapshot_to_dict(doc) for doc in q.stream()]

        try:
            conversations = await asyncio.to_thread(_get_docs_sync, query)
        except Exception as e:
            raise_for_missing_index(e)
            raise
        logger.info(
            "[ConversationStore] Retrieved %d conversations for user %s and persona %s",
            len(conversations), user_id, persona_id,
        )
        return conversations
