from enum import Enum
from pydantic import BaseModel
from app.models import BaseDBModel


class InvitationStatus(str, Enum):
    PENDING = "pending"


class InvitationSender(BaseModel):
    id: str
    name: str


class InvitationCreate(BaseModel):
    to_user_id: str


class Invitation(BaseDBModel):
    team_id: str
    team_name: str
    from_user: InvitationSender
    to_user_id: str
    status: InvitationStatus = InvitationStatus.PENDING
