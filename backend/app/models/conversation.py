from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from app.models import BaseDBModel


class ConversationParticipant(BaseModel):
    id: str
    name: str
    avatar_initial: str = "?"


class LastMessage(BaseModel):
    text: str
    sent_at: datetime
    sender_id: str


class Conversation(BaseDBModel):
    participant_ids: List[str] = []
    participants: Dict[str, ConversationParticipant] = {}
    last_message: Optional[LastMessage] = None
    is_group_chat: bool = False
    group_name: Optional[str] = None
    team_id: Optional[str] = None


class MessageCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=4000)


class Message(BaseDBModel):
    conversation_id: str
    sender_id: str
    text: str
    sent_at: datetime
