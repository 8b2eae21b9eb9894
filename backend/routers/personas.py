# backend/routers/personas.py

from fastapi import APIRouter, Depends

from backend.auth import AuthenticatedUser, get_current_user
from backend.dependencies import get_persona_service
from backend.errors import AccessDeniedError
from backend.responses import created_response, success_response
from backend.services.ownership import ensure_owner
from backend.services.persona_service import PersonaService
from backend.validation import CreatePersonaRequest, UpdatePersonaRequest

router = APIRouter()


@router.post("")
async def create_persona(
    payload: CreatePersonaRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    personas: PersonaService = Depends(get_persona_service),
):
    persona = await personas.create_persona(user.uid, payload.model_dump())
    return created_response(persona, "Persona created successfully")


@router.get("")
async def list_personas(
    user: AuthenticatedUser = Depends(get_current_user),
    personas: PersonaService = Depends(get_persona_service),
):
    """Personas created by the caller, newest first."""
    items = await personas.get_user_personas(user.uid)
    return success_response({"personas": items, "count": len(items)})


@router.get("/{persona_id}")
async def get_persona(
    persona_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    personas: PersonaService = Depends(get_persona_service),
):
    persona = await personas.get_persona_by_id(persona_id)
    try:
        ensure_owner(persona, user.uid, "Persona")
    except AccessDeniedError as e:
        raise AccessDeniedError("You can only access your own personas") from e
    return success_response(persona)


@router.put("/{persona_id}")
async def update_persona(
    persona_id: str,
    payload: UpdatePersonaRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    personas: PersonaService = Depends(get_persona_service),
):
    try:
        persona = await personas.update_persona(
            persona_id, user.uid, payload.model_dump(exclude_unset=True, exclude_none=True)
        )
    except AccessDeniedError as e:
        raise AccessDeniedError("You can only update your own personas") from e
    return success_response(persona, "Persona updated successfully")


@router.delete("/{persona_id}")
async def delete_persona(
    persona_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    personas: PersonaService = Depends(get_persona_service),
):
    try:
        await personas.delete_persona(persona_id, user.uid)
    except AccessDeniedError as e:
        raise AccessDeniedError("You can only delete your own personas") from e
    return success_response({"deletedId": persona_id}, "Persona deleted successfully")
