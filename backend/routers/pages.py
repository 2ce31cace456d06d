"""
Pages Router
FastAPI routes for page initialization, generation and content access
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse, StreamingResponse

from agents.model_client import MODEL_CHOICE_LOCAL
from agents.text_utils import truncate
from errors import GenerationInProgressError, InvalidPageIdError, PageNotFoundError, PersistenceError
from routers.dependencies import get_broadcaster, get_coordinator, get_store, valid_page_id
from schemas.page import (
    ComponentCodeResponse,
    GenerationJobResponse,
    PageContentResponse,
    PageContentUpdate,
    PageContentUpdateResponse,
    PageGenerateRequest,
    PageGenerateResponse,
    PageInitializeRequest,
    PageInitializeResponse,
    PageListResponse,
    PageSummary,
)
from services.event_service import PageBroadcaster, subscribe
from services.generation_service import GenerationCoordinator
from services.page_store import FilePageStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pages", tags=["pages"])


def _model_choice(use_local_model: bool) -> Optional[str]:
    return MODEL_CHOICE_LOCAL if use_local_model else None


# ============================================================================
# Initialization & Generation
# ============================================================================

@router.post("/initialize", response_model=PageInitializeResponse)
async def initialize_page(
    payload: PageInitializeRequest,
    store: FilePageStore = Depends(get_store),
    coordinator: GenerationCoordinator = Depends(get_coordinator),
):
    """
    Create a page from its page-type template

    When a prompt is given the title is generated from it (keyword title
    when the model is unavailable); otherwise the page type's default title.
    """
    page_id = valid_page_id(payload.pageId)

    if payload.userPrompt:
        title = await coordinator.model_router.generate_title(
            payload.userPrompt,
            payload.pageType,
            model_choice=_model_choice(payload.useLocalModel),
        )
    else:
        title = store.default_title(payload.pageType)

    try:
        content = await store.initialize_page(page_id, payload.pageType, title)
    except PersistenceError as e:
        logger.error(f"[initialize_page] page_id={page_id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to initialize page"
        )

    return PageInitializeResponse(pageId=page_id, content=content, title=title)


@router.post(
    "/generate",
    response_model=PageGenerateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate_page(
    payload: PageGenerateRequest,
    coordinator: GenerationCoordinator = Depends(get_coordinator),
):
    """
    Start generating a page in the background

    Returns as soon as the job is accepted. Progress, errors and the final
    content arrive as page messages (WebSocket ``/ws`` or SSE ``/events``).
    """
    logger.info(
        f"[generate_page] page_id={payload.pageId} page_type={payload.pageType} "
        f"prompt={truncate(payload.userPrompt, 100)!r}"
    )

    try:
        coordinator.generate(
            payload.pageId,
            payload.pageType,
            payload.userPrompt,
            model_choice=_model_choice(payload.useLocalModel),
        )
    except InvalidPageIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except GenerationInProgressError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return PageGenerateResponse(pageId=payload.pageId)


@router.get("/{page_id}/job", response_model=GenerationJobResponse)
async def get_generation_job(
    page_id: str = Depends(valid_page_id),
    coordinator: GenerationCoordinator = Depends(get_coordinator),
):
    """State of the page's most recent generation job"""
    job = coordinator.get_job(page_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No generation job for this page"
        )
    return GenerationJobResponse(**job.to_dict())


# ============================================================================
# Listing & Content
# ============================================================================

@router.get("/list", response_model=PageListResponse)
async def list_pages(
    pageType: Optional[str] = None,
    store: FilePageStore = Depends(get_store),
):
    """List generated pages, newest first, optionally filtered by type"""
    pages = await store.list_pages(pageType)
    return PageListResponse(pages=[PageSummary(**page.model_dump()) for page in pages])


@router.get("/{page_id}/content", response_model=PageContentResponse)
async def get_page_content(
    page_id: str = Depends(valid_page_id),
    store: FilePageStore = Depends(get_store),
):
    try:
        content = await store.read_content(page_id)
    except PageNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Page not found"
        )

    return PageContentResponse(
        pageId=page_id,
        isComponent=store.has_artifact(page_id),
        content=content,
    )


@router.put("/{page_id}/content", response_model=PageContentUpdateResponse)
async def update_page_content(
    payload: PageContentUpdate,
    page_id: str = Depends(valid_page_id),
    store: FilePageStore = Depends(get_store),
    broadcaster: PageBroadcaster = Depends(get_broadcaster),
):
    """Replace the viewer document and notify the page's subscribers"""
    try:
        await store.write_content(page_id, payload.content)
    except PersistenceError as e:
        logger.error(f"[update_page_content] page_id={page_id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update page content"
        )

    broadcaster.broadcast_page_update(page_id, payload.content)
    return PageContentUpdateResponse()


@router.get("/{page_id}/component")
async def get_page_component(
    page_id: str = Depends(valid_page_id),
    store: FilePageStore = Depends(get_store),
):
    """Serve the built bundle"""
    artifact = store.artifact_path(page_id)
    if not artifact.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="The built component has not been generated yet"
        )

    return FileResponse(
        artifact,
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/{page_id}/component-code", response_model=ComponentCodeResponse)
async def get_page_component_code(
    page_id: str = Depends(valid_page_id),
    store: FilePageStore = Depends(get_store),
):
    """Serve the component source"""
    code = await store.read_component_source(page_id)
    if code is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="The component code has not been generated yet"
        )
    return ComponentCodeResponse(pageId=page_id, code=code)


# ============================================================================
# Event streaming
# ============================================================================

@router.get("/{page_id}/events")
async def stream_page_events(
    page_id: str = Depends(valid_page_id),
    broadcaster: PageBroadcaster = Depends(get_broadcaster),
):
    """
    Stream page messages via Server-Sent Events (SSE)

    Event types:
    - generation_start / generation_complete: Job lifecycle
    - page_update: New content (data.content)
    - error: Generation or build error (message)

    Only messages broadcast after the connection is opened are delivered.
    """
    return StreamingResponse(
        subscribe(broadcaster, page_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )
