from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status

from app.api.dependencies import (
    get_current_profile,
    get_current_user_id,
    get_identity,
    get_store,
)
from app.api.errors import to_http_exception
from app.config import settings
from app.db.identity import IdentityProvider
from app.db.store import DocumentStore
from app.models.profile import OnboardingData, Profile, ProfileUpdate
from app.services.account_service import AccountService
from app.services.exceptions import ProjectMatesError
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("/me", response_model=Profile)
async def get_my_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=Profile)
async def update_my_profile(
    patch: ProfileUpdate,
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await ProfileService.update_profile(current_user_id, patch, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)


@router.post("/me/onboarding", response_model=Profile)
async def complete_onboarding(
    data: OnboardingData,
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """Fill in the profile basics and mark onboarding as done."""
    try:
        return await ProfileService.complete_onboarding(current_user_id, data, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)


@router.delete("/me")
async def delete_my_account(
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity),
):
    """Leave the current team, then delete the profile and the login."""
    try:
        await AccountService.delete_account(current_user_id, store, identity)
    except ProjectMatesError as e:
        raise to_http_exception(e)
    return {"message": "Account deleted"}


@router.get("/search", response_model=List[Profile])
async def search_profiles(
    name: Optional[str] = Query(None, description="Case-insensitive name substring"),
    skill: Optional[str] = None,
    interest: Optional[str] = None,
    team_status: Optional[str] = Query(
        None, description="looking, in-team, or Any"
    ),
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await ProfileService.search_profiles(
            current_user_id,
            store,
            name=name,
            skill=skill,
            interest=interest,
            team_status=team_status,
        )
    except ValueError as e:
        raise HTTPException(http_status.HTTP_400_BAD_REQUEST, str(e))


@router.get("/suggested", response_model=List[Profile])
async def get_suggested_teammates(
    limit: int = Query(
        settings.suggested_teammates_limit, ge=1, le=50, description="Max profiles"
    ),
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """Students still looking for a team."""
    return await ProfileService.get_suggested_teammates(current_user_id, limit, store)


@router.get("/{user_id}", response_model=Profile)
async def get_profile(
    user_id: str,
    _: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    profile = await ProfileService.get_profile(user_id, store)
    if not profile:
        raise HTTPException(http_status.HTTP_404_NOT_FOUND, "Profile not found")
    return profile
