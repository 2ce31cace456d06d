"""
Shared FastAPI dependencies

The app factory stores the long-lived services on ``app.state``; routes get
them through these functions so tests can build an app with fakes.
"""
from fastapi import HTTPException, Request, WebSocket, status

from errors import InvalidPageIdError
from services.event_service import PageBroadcaster
from services.generation_service import GenerationCoordinator
from services.page_store import FilePageStore, validate_page_id


def get_store(request: Request) -> FilePageStore:
    return request.app.state.page_store


def get_coordinator(request: Request) -> GenerationCoordinator:
    return request.app.state.coordinator


def get_broadcaster(request: Request) -> PageBroadcaster:
    return request.app.state.broadcaster


def get_ws_broadcaster(websocket: WebSocket) -> PageBroadcaster:
    return websocket.app.state.broadcaster


def valid_page_id(page_id: str) -> str:
    """Path parameter validator: 400 for ids that are not usable"""
    try:
        return validate_page_id(page_id)
    except InvalidPageIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
