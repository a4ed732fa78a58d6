import logging
from datetime import datetime, timezone
from typing import Callable, List

from app.db.collections import CONVERSATIONS, MESSAGES, direct_conversation_id
from app.db.store import DocumentStore, FilterOp, Query, Subscription
from app.models.conversation import Conversation, LastMessage, Message
from app.models.profile import Profile
from app.services.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
)
from app.services.team_service import participant_for

logger = logging.getLogger(__name__)


def _conversations_for(user_id: str) -> Query:
    return Query(CONVERSATIONS).where("participant_ids", FilterOp.ARRAY_CONTAINS, user_id)


def _messages_in(conversation_id: str) -> Query:
    return Query(MESSAGES, order_by="sent_at").where(
        "conversation_id", FilterOp.EQ, conversation_id
    )


class ConversationService:
    @staticmethod
    async def find_or_create_direct_conversation(
        user: Profile, other: Profile, store: DocumentStore
    ) -> str:
        if user.id == other.id:
            raise PreconditionFailedError("You cannot start a conversation with yourself.")

        conversation_id = direct_conversation_id(user.id, other.id)
        if await store.get(CONVERSATIONS, conversation_id) is None:
            conversation = Conversation(
                id=conversation_id,
                participant_ids=[user.id, other.id],
                participants={
                    user.id: participant_for(user),
                    other.id: participant_for(other),
                },
            )
            await store.set(
                CONVERSATIONS, conversation_id, conversation.model_dump(mode="json")
            )
            logger.info(f"Started conversation {conversation_id}")
        return conversation_id

    @staticmethod
    async def get_conversation(
        conversation_id: str, user_id: str, store: DocumentStore
    ) -> Conversation:
        document = await store.get(CONVERSATIONS, conversation_id)
        if document is None:
            raise NotFoundError("Conversation not found.")
        conversation = Conversation(**document)
        if user_id not in conversation.participant_ids:
            raise PermissionDeniedError("You are not part of this conversation.")
        return conversation

    @staticmethod
    async def send_message(
        conversation_id: str, sender_id: str, text: str, store: DocumentStore
    ) -> Message:
        await ConversationService.get_conversation(conversation_id, sender_id, store)

        message = Message(
            id=store.new_id(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            text=text,
            sent_at=datetime.now(timezone.utc),
        )
        last_message = LastMessage(
            text=text, sent_at=message.sent_at, sender_id=sender_id
        )

        batch = store.batch()
        batch.set(MESSAGES, message.id, message.model_dump(mode="json"))
        batch.update(
            CONVERSATIONS,
            conversation_id,
            {"last_message": last_message.model_dump(mode="json")},
        )
        await store.commit(batch)
        return message

    @staticmethod
    async def list_conversations(
        user_id: str, store: DocumentStore
    ) -> List[Conversation]:
        return [
            Conversation(**doc) for doc in await store.query(_conversations_for(user_id))
        ]

    @staticmethod
    async def list_messages(
        conversation_id: str, user_id: str, store: DocumentStore
    ) -> List[Message]:
        await ConversationService.get_conversation(conversation_id, user_id, store)
        return [Message(**doc) for doc in await store.query(_messages_in(conversation_id))]

    @staticmethod
    async def listen_for_conversations(
        user_id: str,
        callback: Callable[[List[Conversation]], None],
        store: DocumentStore,
    ) -> Subscription:
        return await store.subscribe(
            _conversations_for(user_id),
            lambda docs: callback([Conversation(**doc) for doc in docs]),
        )

    @staticmethod
    async def listen_for_messages(
        conversation_id: str,
        user_id: str,
        callback: Callable[[List[Message]], None],
        store: DocumentStore,
    ) -> Subscription:
        await ConversationService.get_conversation(conversation_id, user_id, store)
        return await store.subscribe(
            _messages_in(conversation_id),
            lambda docs: callback([Message(**doc) for doc in docs]),
        )
