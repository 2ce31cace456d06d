"""
Pydantic schemas for API request/response validation
"""
from .page import (
    PageType,
    PageInitializeRequest,
    PageInitializeResponse,
    PageGenerateRequest,
    PageGenerateResponse,
    PageContentResponse,
    PageContentUpdate,
    PageContentUpdateResponse,
    ComponentCodeResponse,
    PageSummary,
    PageListResponse,
    GenerationJobResponse,
)

__all__ = [
    # Page
    "PageType",
    "PageInitializeRequest",
    "PageInitializeResponse",
    "PageGenerateRequest",
    "PageGenerateResponse",
    "PageContentResponse",
    "PageContentUpdate",
    "PageContentUpdateResponse",
    "ComponentCodeResponse",
    "PageSummary",
    "PageListResponse",
    # Job
    "GenerationJobResponse",
]
