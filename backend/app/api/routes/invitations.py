from typing import List

from fastapi import APIRouter, Depends, HTTPException, status as http_status

from app.api.dependencies import get_current_profile, get_current_user_id, get_store
from app.api.errors import to_http_exception
from app.db.store import DocumentStore
from app.models.invitation import Invitation, InvitationCreate
from app.models.profile import Profile
from app.services.exceptions import ProjectMatesError
from app.services.invitation_service import InvitationService
from app.services.profile_service import ProfileService
from app.services.team_service import TeamService

router = APIRouter()


@router.post("", response_model=Invitation, status_code=http_status.HTTP_201_CREATED)
async def send_invitation(
    payload: InvitationCreate,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    """Invite a student to the current user's team."""
    if not profile.team_id:
        raise HTTPException(http_status.HTTP_409_CONFLICT, "You are not on a team")
    try:
        team = await TeamService.require_team(profile.team_id, store)
        to_user = await ProfileService.require_profile(payload.to_user_id, store)
        return await InvitationService.send_invitation(team, profile, to_user, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[Invitation])
async def list_pending_invitations(
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    return await InvitationService.list_pending_invitations(current_user_id, store)


@router.post("/{invitation_id}/accept")
async def accept_invitation(
    invitation_id: str,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    try:
        await InvitationService.resolve_invitation(invitation_id, True, profile, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)
    return {"message": "Invitation accepted"}


@router.post("/{invitation_id}/decline")
async def decline_invitation(
    invitation_id: str,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    try:
        await InvitationService.resolve_invitation(invitation_id, False, profile, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)
    return {"message": "Invitation declined"}
