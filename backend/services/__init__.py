"""
Services package
Page persistence, message broadcasting and background generation jobs
"""
from .event_service import (
    EventType,
    PageBroadcaster,
    PageMessage,
    Subscriber,
    subscribe,
)
from .page_store import (
    FilePageStore,
    PageMetadata,
    validate_page_id,
)
from .generation_service import (
    GenerationCoordinator,
    GenerationJob,
    JobState,
)

__all__ = [
    # Events
    "EventType",
    "PageBroadcaster",
    "PageMessage",
    "Subscriber",
    "subscribe",
    # Store
    "FilePageStore",
    "PageMetadata",
    "validate_page_id",
    # Generation
    "GenerationCoordinator",
    "GenerationJob",
    "JobState",
]
