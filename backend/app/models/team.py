from typing import List
from pydantic import BaseModel, Field
from app.models import BaseDBModel


class TeamMember(BaseModel):
    """Snapshot of a member taken when they joined. Later profile edits do
    not flow back into the team."""

    id: str
    name: str
    avatar_initial: str = "?"
    skills: List[str] = []
    interests: List[str] = []


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class Team(BaseDBModel):
    name: str
    owner_id: str
    members: List[TeamMember] = []
    skills: List[str] = []
    interests: List[str] = []

    def has_member(self, user_id: str) -> bool:
        return any(member.id == user_id for member in self.members)


class TeamRecommendation(Team):
    score: int
    common_skills: List[str] = []
    common_interests: List[str] = []
