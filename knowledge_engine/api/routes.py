"""
API routes: retrieval, prompt augmentation, knowledge search, settings, health.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from knowledge_engine.generation.context_builder import RetrievalContext

from .models import (
    AugmentRequest,
    AugmentResponse,
    HealthResponse,
    KnowledgeHit,
    RetrieveRequest,
    RetrieveResponse,
    SearchKnowledgeRequest,
    SearchKnowledgeResponse,
    SettingsOut,
    SettingsUpdate,
    SettingsUpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

# Fixed parameters of the chat tool's knowledge search.
SEARCH_THRESHOLD = 0.6
SEARCH_MAX_RESULTS = 5


def _get_engine(request: Request) -> Any:
    return getattr(request.app.state, "engine", None)


def _unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"detail": "Service unavailable: knowledge engine not initialized."},
    )


def _context_out(context: RetrievalContext) -> RetrieveResponse:
    return RetrieveResponse(**context.to_dict())


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check."""
    engine = _get_engine(request)
    if engine is None:
        return HealthResponse(status="unavailable")
    return HealthResponse(
        status="ok",
        store=getattr(request.app.state, "store_kind", ""),
        ranking=engine.ranking,
    )


@router.post("/retrieve", response_model=RetrieveResponse)
async def retrieve(request: Request, body: RetrieveRequest) -> RetrieveResponse | JSONResponse:
    """Retrieve context for a query from the owner's documents."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    if body.advanced:
        context = await engine.retrieve(
            body.query,
            body.owner_id,
            threshold=body.threshold,
            max_results=body.max_results,
            ranking=body.ranking,
        )
    else:
        kwargs = {}
        if body.threshold is not None:
            kwargs["threshold"] = body.threshold
        if body.max_results is not None:
            kwargs["max_results"] = body.max_results
        context = await engine.retrieve_basic(body.query, body.owner_id, **kwargs)
    return _context_out(context)


@router.post("/augment", response_model=AugmentResponse)
async def augment(request: Request, body: AugmentRequest) -> AugmentResponse | JSONResponse:
    """Append retrieved knowledge-base context to a base prompt."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    result = await engine.process_message(
        body.base_prompt,
        body.query,
        body.owner_id,
        use_advanced=body.use_advanced,
    )
    return AugmentResponse(prompt=result.prompt, context=_context_out(result.context))


@router.post("/search-knowledge", response_model=SearchKnowledgeResponse)
async def search_knowledge(
    request: Request, body: SearchKnowledgeRequest
) -> SearchKnowledgeResponse | JSONResponse:
    """Knowledge search as exposed to a chat model's tool call."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    context = await engine.retrieve(
        body.query,
        body.owner_id,
        threshold=SEARCH_THRESHOLD,
        max_results=SEARCH_MAX_RESULTS,
    )
    if not context.has_relevant_content:
        return SearchKnowledgeResponse(results=[], message=context.context_summary)

    hits = []
    for s in context.sources:
        content = " ... ".join(s.excerpts) if s.excerpts else f"{s.title} ({s.type})"
        hits.append(
            KnowledgeHit(
                id=s.id,
                title=s.title,
                content=content,
                type=s.type,
                category=s.category,
                tags=s.tags,
                similarity=round(s.similarity, 4),
                excerpts=s.excerpts,
            )
        )
    return SearchKnowledgeResponse(
        results=hits,
        message=context.context_summary,
        context=context.context,
        total_sources=context.total_sources,
        average_similarity=context.average_similarity,
    )


@router.get("/settings", response_model=SettingsOut)
async def get_settings(request: Request) -> SettingsOut | JSONResponse:
    """Current retrieval settings."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    return SettingsOut(**dataclasses.asdict(engine.settings_store.get_settings()))


@router.post("/settings", response_model=SettingsUpdateResponse)
async def update_settings(
    request: Request, body: SettingsUpdate
) -> SettingsUpdateResponse | JSONResponse:
    """Update retrieval settings; fields outside their allowed range are ignored."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    changes = body.model_dump(exclude_none=True)
    updated = engine.settings_store.update_settings(**changes)
    return SettingsUpdateResponse(
        message="Settings updated successfully",
        settings=SettingsOut(**dataclasses.asdict(updated)),
    )


@router.post("/settings/reset", response_model=SettingsOut)
async def reset_settings(request: Request) -> SettingsOut | JSONResponse:
    """Restore the settings the process started with."""
    engine = _get_engine(request)
    if engine is None:
        return _unavailable()
    return SettingsOut(**dataclasses.asdict(engine.settings_store.reset_settings()))
