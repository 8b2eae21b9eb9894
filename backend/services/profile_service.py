# backend/services/profile_service.py

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class ProfileService:
    """Per-user profile documents, keyed by the identity-provider uid."""

    def __init__(self, db):
        if db is None:
            raise ValueError("Firestore database client 'db' is required.")
        self.collection = db.collection(USERS_COLLECTION)

    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        doc = await asyncio.to_thread(self.collection.document(uid).get)
        return doc.to_dict() if doc.exists else None

    async def update_profile(self, uid: str, fields: Dict[str, Any]) -> List[str]:
        """Merges the given fields into the profile and returns the names written."""
        update_data = dict(fields)
        update_data["updatedAt"] = datetime.now(timezone.utc).isoformat()
        await asyncio.to_thread(self.collection.document(uid).set, update_data, merge=True)
        logger.info("[ProfileService] Updated profile for user %s", uid)
        return list(update_data)

    async def delete_profile(self, uid: str) -> None:
        # The identity-provider account itself is left alone.
        await asyncio.to_thread(self.collection.document(uid).delete)
        logger.info("[ProfileService] Deleted profile data for user %s", uid)
