import pytest

from app.db.collections import CONVERSATIONS
from app.services.conversation_service import ConversationService
from app.services.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
)


@pytest.fixture
async def pair(make_profile):
    return await make_profile(name="Ana Bell"), await make_profile(name="Cole Dunn")


async def test_direct_conversation_is_found_not_duplicated(store, pair):
    ana, cole = pair

    first = await ConversationService.find_or_create_direct_conversation(ana, cole, store)
    second = await ConversationService.find_or_create_direct_conversation(cole, ana, store)

    assert first == second == "_".join(sorted([ana.id, cole.id]))
    conversation = await store.get(CONVERSATIONS, first)
    assert set(conversation["participant_ids"]) == {ana.id, cole.id}
    assert conversation["participants"][cole.id]["avatar_initial"] == "CD"
    assert conversation["last_message"] is None


async def test_cannot_message_yourself(store, pair):
    ana, _ = pair

    with pytest.raises(PreconditionFailedError):
        await ConversationService.find_or_create_direct_conversation(ana, ana, store)


async def test_send_message_updates_last_message(store, pair):
    ana, cole = pair
    conversation_id = await ConversationService.find_or_create_direct_conversation(
        ana, cole, store
    )

    await ConversationService.send_message(conversation_id, ana.id, "hi", store)
    await ConversationService.send_message(conversation_id, cole.id, "hello!", store)

    messages = await ConversationService.list_messages(conversation_id, ana.id, store)
    assert [m.text for m in messages] == ["hi", "hello!"]

    conversation = (await ConversationService.list_conversations(cole.id, store))[0]
    assert conversation.last_message.text == "hello!"
    assert conversation.last_message.sender_id == cole.id


async def test_outsiders_cannot_read_or_write(store, pair, make_profile):
    ana, cole = pair
    outsider = await make_profile()
    conversation_id = await ConversationService.find_or_create_direct_conversation(
        ana, cole, store
    )

    with pytest.raises(PermissionDeniedError):
        await ConversationService.send_message(conversation_id, outsider.id, "hey", store)
    with pytest.raises(PermissionDeniedError):
        await ConversationService.list_messages(conversation_id, outsider.id, store)


async def test_message_to_missing_conversation(store, pair):
    with pytest.raises(NotFoundError):
        await ConversationService.send_message("nowhere", pair[0].id, "hi", store)


async def test_listen_for_messages(store, pair):
    ana, cole = pair
    conversation_id = await ConversationService.find_or_create_direct_conversation(
        ana, cole, store
    )
    snapshots = []

    subscription = await ConversationService.listen_for_messages(
        conversation_id, cole.id, snapshots.append, store
    )
    await ConversationService.send_message(conversation_id, ana.id, "ping", store)
    await subscription.cancel()
    await ConversationService.send_message(conversation_id, ana.id, "unseen", store)

    assert [[m.text for m in s] for s in snapshots] == [[], ["ping"]]


async def test_listen_for_conversations(store, pair, make_profile):
    ana, cole = pair
    snapshots = []

    subscription = await ConversationService.listen_for_conversations(
        ana.id, snapshots.append, store
    )
    await ConversationService.find_or_create_direct_conversation(ana, cole, store)
    await subscription.cancel()

    assert [len(s) for s in snapshots] == [0, 1]
