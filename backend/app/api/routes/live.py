"""Live views over WebSocket.

Each connection owns exactly one store subscription. Every frame carries the
full current result set, so clients replace their state instead of merging.
The subscription is cancelled when the client goes away.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from fastapi.websockets import WebSocketDisconnect
from pydantic import BaseModel

from app.api.dependencies import authenticate_token, get_identity, get_store
from app.db.identity import IdentityProvider
from app.db.store import DocumentStore, Subscription
from app.services.conversation_service import ConversationService
from app.services.exceptions import ProjectMatesError
from app.services.invitation_service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter()

Subscribe = Callable[[Callable[[List[BaseModel]], None]], Awaitable[Subscription]]


async def _authenticate(websocket: WebSocket, token: str, identity: IdentityProvider):
    try:
        user = await authenticate_token(token, identity)
    except HTTPException as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
        return None
    return user


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _send_snapshots(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        items = await queue.get()
        await websocket.send_json(
            {"type": "snapshot", "items": [i.model_dump(mode="json") for i in items]}
        )


async def stream_snapshots(websocket: WebSocket, subscribe: Subscribe) -> None:
    queue: asyncio.Queue = asyncio.Queue()
    try:
        subscription = await subscribe(queue.put_nowait)
    except ProjectMatesError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e))
        return

    await websocket.accept()
    tasks = [
        asyncio.create_task(_send_snapshots(websocket, queue)),
        asyncio.create_task(_wait_for_disconnect(websocket)),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Live view stream failed: {error}")
    finally:
        await subscription.cancel()


@router.websocket("/invitations")
async def live_invitations(
    websocket: WebSocket,
    token: str = Query(...),
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    user = await _authenticate(websocket, token, identity)
    if user is None:
        return
    await stream_snapshots(
        websocket,
        lambda callback: InvitationService.listen_for_invitations(
            user.id, callback, store
        ),
    )


@router.websocket("/conversations")
async def live_conversations(
    websocket: WebSocket,
    token: str = Query(...),
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    user = await _authenticate(websocket, token, identity)
    if user is None:
        return
    await stream_snapshots(
        websocket,
        lambda callback: ConversationService.listen_for_conversations(
            user.id, callback, store
        ),
    )


@router.websocket("/conversations/{conversation_id}/messages")
async def live_messages(
    websocket: WebSocket,
    conversation_id: str,
    token: str = Query(...),
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    user = await _authenticate(websocket, token, identity)
    if user is None:
        return
    await stream_snapshots(
        websocket,
        lambda callback: ConversationService.listen_for_messages(
            conversation_id, user.id, callback, store
        ),
    )
