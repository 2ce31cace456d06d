"""
Page-related Pydantic schemas
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PageType = Literal["h5", "admin", "pc"]


class PageInitializeRequest(BaseModel):
    """Request schema for initializing a page"""
    pageId: str = Field(..., min_length=1, max_length=64)
    pageType: PageType
    userPrompt: Optional[str] = Field(None, description="Used to generate the page title")
    useLocalModel: bool = False


class PageInitializeResponse(BaseModel):
    success: bool = True
    pageId: str
    content: str
    title: str
    message: str = "Page initialized successfully"


class PageGenerateRequest(BaseModel):
    """Request schema for starting a generation job"""
    pageId: str = Field(..., min_length=1, max_length=64)
    pageType: PageType
    userPrompt: str = Field(..., min_length=1, max_length=10000)
    useLocalModel: bool = False


class PageGenerateResponse(BaseModel):
    """Returned as soon as the job is accepted"""
    success: bool = True
    pageId: str
    message: str = "Page generation started"
    status: str = "processing"


class PageContentResponse(BaseModel):
    success: bool = True
    pageId: str
    isComponent: bool  # a built bundle exists
    content: str


class PageContentUpdate(BaseModel):
    """Request schema for replacing a page's viewer document"""
    content: str = Field(..., min_length=1)


class PageContentUpdateResponse(BaseModel):
    success: bool = True
    message: str = "Page content updated successfully"


class ComponentCodeResponse(BaseModel):
    success: bool = True
    pageId: str
    code: str


class PageSummary(BaseModel):
    """One entry of the page list"""
    id: str
    title: str
    pageType: str
    createdAt: datetime
    updatedAt: datetime
    description: Optional[str] = None


class PageListResponse(BaseModel):
    success: bool = True
    pages: List[PageSummary]


class GenerationJobResponse(BaseModel):
    """Current state of a page's generation job"""
    pageId: str
    pageType: str
    state: str  # not_started, initializing, ..., done, failed
    error: Optional[str] = None
    buildError: Optional[str] = None
    createdAt: datetime
    finishedAt: Optional[datetime] = None
