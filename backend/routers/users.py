# backend/routers/users.py

from fastapi import APIRouter, Depends

from backend.auth import AuthenticatedUser, get_current_user
from backend.dependencies import get_profile_service
from backend.errors import AppError
from backend.responses import success_response
from backend.services.profile_service import ProfileService
from backend.validation import UpdateProfileRequest

router = APIRouter()


@router.get("/me")
async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    """Basic information from the caller's verified token."""
    return success_response({"user": user.model_dump(by_alias=True)}, "User authenticated successfully")


@router.get("/profile")
async def get_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    profile = await profiles.get_profile(user.uid)
    if profile is None:
        raise AppError("User profile not found", status_code=404, code="profile/not-found")
    # Identity fields from the token win over anything stored.
    profile = {**profile, "uid": user.uid, "email": user.email, "lastLoginAt": user.auth_time}
    return success_response({"profile": profile}, "Profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    payload: UpdateProfileRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    updated_fields = await profiles.update_profile(user.uid, payload.allowed_fields())
    return success_response({"updatedFields": updated_fields}, "Profile updated successfully")


@router.delete("/account")
async def delete_account(
    user: AuthenticatedUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    await profiles.delete_profile(user.uid)
    return success_response({"uid": user.uid}, "User data deleted successfully")
