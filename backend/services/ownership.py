# backend/services/ownership.py

from typing import Optional

from backend.errors import AccessDeniedError, NotFoundError

OWNER_FIELD = "userId"


def is_owner(resource: Optional[dict], actor_id: str) -> bool:
    return resource is not None and resource.get(OWNER_FIELD) == actor_id


def ensure_owner(resource: Optional[dict], actor_id: str, resource_name: str = "Resource") -> dict:
    """Returns the resource when actor_id owns it; raises NotFoundError / AccessDeniedError otherwise."""
    if resource is None:
        raise NotFoundError(resource_name)
    if not is_owner(resource, actor_id):
        raise AccessDeniedError()
    return resource
