from typing import List

from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_profile, get_current_user_id, get_store
from app.api.errors import to_http_exception
from app.db.store import DocumentStore
from app.models.conversation import Conversation, Message, MessageCreate
from app.models.profile import Profile
from app.services.conversation_service import ConversationService
from app.services.exceptions import ProjectMatesError
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("", response_model=List[Conversation])
async def list_conversations(
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    return await ConversationService.list_conversations(current_user_id, store)


@router.post("/direct/{user_id}")
async def start_direct_conversation(
    user_id: str,
    profile: Profile = Depends(get_current_profile),
    store: DocumentStore = Depends(get_store),
):
    """Return the id of the one-to-one conversation, creating it if needed."""
    try:
        other = await ProfileService.require_profile(user_id, store)
        conversation_id = await ConversationService.find_or_create_direct_conversation(
            profile, other, store
        )
    except ProjectMatesError as e:
        raise to_http_exception(e)
    return {"conversation_id": conversation_id}


@router.get("/{conversation_id}/messages", response_model=List[Message])
async def list_messages(
    conversation_id: str,
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await ConversationService.list_messages(
            conversation_id, current_user_id, store
        )
    except ProjectMatesError as e:
        raise to_http_exception(e)


@router.post("/{conversation_id}/messages", response_model=Message)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await ConversationService.send_message(
            conversation_id, current_user_id, payload.text, store
        )
    except ProjectMatesError as e:
        raise to_http_exception(e)
