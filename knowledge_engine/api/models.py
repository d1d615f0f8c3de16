"""
Request and response models for the knowledge engine API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class RetrieveRequest(BaseModel):
    """Request body for POST /api/retrieve."""

    query: str = Field(..., min_length=1, description="User message")
    owner_id: str = Field(..., min_length=1, description="Owner whose documents are searched")
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0, description="Initial threshold; defaults to settings")
    max_results: Optional[int] = Field(None, ge=1, le=10)
    ranking: Optional[str] = Field(None, pattern="^(lexical|semantic)$")
    advanced: bool = Field(True, description="Expand the query and relax the threshold")


class SourceOut(BaseModel):
    """One matched document."""

    id: str
    title: str
    type: str
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    similarity: float
    excerpts: List[str] = Field(default_factory=list)


class RetrieveResponse(BaseModel):
    """Response for POST /api/retrieve."""

    has_relevant_content: bool
    context: str
    context_summary: str
    sources: List[SourceOut] = Field(default_factory=list)
    total_sources: int = 0
    average_similarity: float = 0.0


class AugmentRequest(BaseModel):
    """Request body for POST /api/augment."""

    base_prompt: str = Field(..., description="System prompt to extend")
    query: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    use_advanced: bool = True


class AugmentResponse(BaseModel):
    """Response for POST /api/augment."""

    prompt: str
    context: RetrieveResponse


class SearchKnowledgeRequest(BaseModel):
    """Request body for POST /api/search-knowledge."""

    query: str = Field(..., min_length=1, description="Search query derived from the conversation")
    owner_id: str = Field(..., min_length=1)


class KnowledgeHit(BaseModel):
    """Single knowledge search result; content joins the excerpts."""

    id: str
    title: str
    content: str
    type: str
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    similarity: float
    excerpts: List[str] = Field(default_factory=list)


class SearchKnowledgeResponse(BaseModel):
    """Response for POST /api/search-knowledge."""

    results: List[KnowledgeHit] = Field(default_factory=list)
    message: str
    context: str = ""
    total_sources: int = 0
    average_similarity: float = 0.0


class SettingsOut(BaseModel):
    """Current retrieval settings."""

    threshold: float
    min_threshold: float
    max_results: int
    max_excerpts: int
    temperature: float


class SettingsUpdate(BaseModel):
    """Partial update; out-of-range fields are ignored by the settings store."""

    threshold: Optional[float] = None
    min_threshold: Optional[float] = None
    max_results: Optional[int] = None
    max_excerpts: Optional[int] = None
    temperature: Optional[float] = None


class SettingsUpdateResponse(BaseModel):
    """Response for POST /api/settings."""

    message: str
    settings: SettingsOut


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    status: str = "ok"
    store: str = ""
    ranking: str = ""
