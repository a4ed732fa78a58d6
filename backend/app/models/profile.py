from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from enum import Enum
from app.models import BaseDBModel


class TeamStatus(str, Enum):
    LOOKING = "looking"
    IN_TEAM = "in-team"


def split_tags(value) -> List[str]:
    """Accept either a list of tags or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValueError("tags must be a list or a comma-separated string")
    if any(not isinstance(tag, str) for tag in value):
        raise ValueError("tags must be strings")
    return [tag.strip() for tag in value if tag.strip()]


def avatar_initial_for(name: str) -> str:
    initials = "".join(part[0] for part in name.split()).upper()
    return initials or "?"


class Profile(BaseDBModel):
    name: str
    avatar_initial: str = "?"
    title: str = ""
    about: str = ""
    department: str = ""
    year: int = 1
    email: str = ""
    interests: List[str] = []
    skills: List[str] = []
    working_preferences: List[str] = []
    team_status: TeamStatus = TeamStatus.LOOKING
    team_id: Optional[str] = None
    is_team_owner: bool = False
    profile_complete: bool = False


class ProfileUpdate(BaseModel):
    """Fields a user may edit on their own profile. Team fields are owned
    by the team lifecycle and are not accepted here."""

    name: Optional[str] = Field(None, min_length=1, max_length=120)
    title: Optional[str] = None
    about: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = Field(None, ge=1, le=10)
    interests: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    working_preferences: Optional[List[str]] = None

    @field_validator("interests", "skills", "working_preferences", mode="before")
    @classmethod
    def _split(cls, value):
        if value is None:
            return None
        return split_tags(value)


class OnboardingData(BaseModel):
    title: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    year: int = Field(..., ge=1, le=10)
    skills: List[str] = []
    interests: List[str] = []

    @field_validator("skills", "interests", mode="before")
    @classmethod
    def _split(cls, value):
        return split_tags(value)

