"""
Realtime Router
WebSocket endpoint for page message subscriptions

Protocol (JSON text frames):
    client → {"action": "join_page", "pageId": "..."}
    server → {"type": "joined_page", "pageId": "..."}
    client → {"action": "leave_page", "pageId": "..."}
    server → {"type": "left_page", "pageId": "..."}
    server → page messages ({"type": "generation_start", "pageId": ..., ...})
"""
import asyncio
import json
import logging
import uuid

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from errors import InvalidPageIdError
from routers.dependencies import get_ws_broadcaster
from services.event_service import PageBroadcaster, Subscriber
from services.page_store import validate_page_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

JOIN_PAGE = "join_page"
LEAVE_PAGE = "leave_page"


async def _forward(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Push everything the subscriber receives to the socket, in order"""
    while True:
        message = await subscriber.receive()
        await websocket.send_json(message.model_dump(exclude_none=True))


async def _handle_command(
    websocket: WebSocket,
    broadcaster: PageBroadcaster,
    subscriber: Subscriber,
    raw: str,
) -> None:
    try:
        command = json.loads(raw)
        action = command.get("action")
        page_id = validate_page_id(command.get("pageId"))
    except (ValueError, AttributeError, InvalidPageIdError) as e:
        await websocket.send_json({"type": "error", "message": f"Invalid command: {e}"})
        return

    if action == JOIN_PAGE:
        broadcaster.join(page_id, subscriber)
        await websocket.send_json({"type": "joined_page", "pageId": page_id})
    elif action == LEAVE_PAGE:
        broadcaster.leave(page_id, subscriber)
        await websocket.send_json({"type": "left_page", "pageId": page_id})
    else:
        await websocket.send_json({"type": "error", "message": f"Unknown action: {action}"})


@router.websocket("/ws")
async def page_socket(
    websocket: WebSocket,
    broadcaster: PageBroadcaster = Depends(get_ws_broadcaster),
):
    await websocket.accept()
    subscriber = Subscriber(name=f"ws:{uuid.uuid4().hex[:8]}")
    logger.info(f"[page_socket] {subscriber.name} connected")

    forwarder = asyncio.create_task(_forward(websocket, subscriber))
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_command(websocket, broadcaster, subscriber, raw)
    except WebSocketDisconnect:
        logger.info(f"[page_socket] {subscriber.name} disconnected")
    finally:
        broadcaster.leave_all(subscriber)
        forwarder.cancel()
        await asyncio.gather(forwarder, return_exceptions=True)
