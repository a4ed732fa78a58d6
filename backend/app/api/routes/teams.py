from fastapi import APIRouter, Depends, HTTPException, status as http_status
from typing import List

from app.api.dependencies import get_current_profile, get_current_user_id, get_store
from app.api.errors import to_http_exception
from app.db.store import DocumentStore
from app.models.profile import Profile
from app.models.team import Team, TeamCreate, TeamRecommendation
from app.services.exceptions import ProjectMatesError
from app.services.recommendation_service import RecommendationService
from app.services.team_service import TeamService

router = APIRouter()


@router.post("", response_model=Team, status_code=http_status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await TeamService.create_team(payload.name, profile, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)


@router.get("/recommended", response_model=List[TeamRecommendation])
async def get_recommended_teams(
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    """Teams ranked by shared skills (double weight) and interests."""
    return await RecommendationService.get_recommended_teams(profile, store)


@router.get("/{team_id}", response_model=Team)
async def get_team(
    team_id: str,
    _: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    team = await TeamService.get_team(team_id, store)
    if not team:
        raise HTTPException(http_status.HTTP_404_NOT_FOUND, "Team not found")
    return team


@router.post("/{team_id}/leave")
async def leave_team(
    team_id: str,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    if profile.team_id != team_id:
        raise HTTPException(http_status.HTTP_409_CONFLICT, "You are not on this team")
    try:
        await TeamService.leave_team(profile, team_id, store)
    except ProjectMatesError as e:
        raise to_http_exception(e)
    return {"message": "Left team"}
