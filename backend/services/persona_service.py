# backend/services/persona_service.py

import asyncio
import logging
from typing import Any, Dict, List, Optional

from google.cloud.firestore import SERVER_TIMESTAMP, Query

from backend.errors import raise_for_missing_index
from backend.services.ownership import OWNER_FIELD, ensure_owner, is_owner

logger = logging.getLogger(__name__)

PERSONAS_COLLECTION = "personas"
# Fields a client may change; the owner is fixed at creation.
MUTABLE_FIELDS = ("name", "description", "characteristics")


def snapshot_to_dict(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class PersonaService:
    """
    CRUD over the personas collection. Ownership is enforced here; the store
    itself has no notion of who may touch a document.
    """

    def __init__(self, db):
        if db is None:
            raise ValueError("Firestore database client 'db' is required.")
        self.collection = db.collection(PERSONAS_COLLECTION)

    async def create_persona(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        persona_data = {
            "name": data["name"].strip(),
            "description": data["description"].strip(),
            "characteristics": list(data.get("characteristics") or []),
            OWNER_FIELD: user_id,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }

        def _create():
            _, doc_ref = self.collection.add(persona_data)
            # Read back so the resolved server timestamps are returned.
            return snapshot_to_dict(doc_ref.get())

        persona = await asyncio.to_thread(_create)
        logger.info("[PersonaService] Created persona %s for user %s", persona["id"], user_id)
        return persona

    async def get_user_personas(self, user_id: str) -> List[Dict[str, Any]]:
        """All personas owned by user_id, newest first."""
        query = self.collection.where(OWNER_FIELD, "==", user_id).order_by("createdAt", direction=Query.DESCENDING)

        def _get_docs_sync(q):
            return [snapshot_to_dict(doc) for doc in q.stream()]

        try:
            personas = await asyncio.to_thread(_get_docs_sync, query)
        except Exception as e:
            raise_for_missing_index(e)
            raise
        logger.info("[PersonaService] Retrieved %d personas for user %s", len(personas), user_id)
        return personas

    async def get_persona_by_id(self, persona_id: str) -> Optional[Dict[str, Any]]:
        """The persona, or None when absent. No ownership filtering."""
        doc = await asyncio.to_thread(self.collection.document(persona_id).get)
        if not doc.exists:
            return None
        return snapshot_to_dict(doc)

    async def update_persona(self, persona_id: str, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        doc_ref = self.collection.document(persona_id)
        existing = await self.get_persona_by_id(persona_id)
        ensure_owner(existing, user_id, "Persona")

        update_data = {key: value for key, value in updates.items() if key in MUTABLE_FIELDS}
        update_data["updatedAt"] = SERVER_TIMESTAMP

        def _update():
            doc_ref.update(update_data)
            return snapshot_to_dict(doc_ref.get())

        persona = await asyncio.to_thread(_update)
        logger.info("[PersonaService] Updated persona %s (%s)", persona_id, ", ".join(sorted(update_data)))
        return persona

    async def delete_persona(self, persona_id: str, user_id: str) -> None:
        existing = await self.get_persona_by_id(persona_id)
        ensure_owner(existing, user_id, "Persona")
        await asyncio.to_thread(self.collection.document(persona_id).delete)
        logger.info("[PersonaService] Deleted persona %s", persona_id)

    async def verify_ownership(self, persona_id: str, user_id: str) -> bool:
        return is_owner(await self.get_persona_by_id(persona_id), user_id)
