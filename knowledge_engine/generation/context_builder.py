"""
Context builder for knowledge-base augmented prompts.

Formats matched documents into LLM-ready text with citation markers [1], [2], ...
and keeps machine-readable source metadata alongside, so callers can map a
citation back to a document id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from knowledge_engine.rag.excerpts import extract_excerpts
from knowledge_engine.rag.retriever import ScoredResult

logger = logging.getLogger(__name__)

NO_CONTENT_SUMMARY = "No relevant content found in knowledge base"
ERROR_SUMMARY = "Error retrieving context from knowledge base"

SUMMARY_MAX_CHARS = 150
SEPARATOR = "\n\n" + "─" * 80 + "\n\n"


@dataclass
class Source:
    """One matched document as reported to callers."""

    id: str
    title: str
    type: str
    category: Optional[str]
    tags: List[str]
    similarity: float
    excerpts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "category": self.category,
            "tags": list(self.tags),
            "similarity": self.similarity,
            "excerpts": list(self.excerpts),
        }


@dataclass
class RetrievalContext:
    """Outcome of one retrieval call; valid (possibly empty) even on failure."""

    has_relevant_content: bool
    context: str
    context_summary: str
    sources: List[Source] = field(default_factory=list)
    total_sources: int = 0
    average_similarity: float = 0.0

    @classmethod
    def empty(cls, summary: str = NO_CONTENT_SUMMARY) -> "RetrievalContext":
        return cls(
            has_relevant_content=False,
            context="",
            context_summary=summary,
            sources=[],
            total_sources=0,
            average_similarity=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_relevant_content": self.has_relevant_content,
            "context": self.context,
            "context_summary": self.context_summary,
            "sources": [s.to_dict() for s in self.sources],
            "total_sources": self.total_sources,
            "average_similarity": self.average_similarity,
        }


def summarize_excerpts(excerpts: Sequence[str]) -> str:
    """Top excerpt, cut to 147 chars plus "..." when longer than 150."""
    if not excerpts:
        return ""
    top = excerpts[0]
    if len(top) > SUMMARY_MAX_CHARS:
        return top[: SUMMARY_MAX_CHARS - 3] + "..."
    return top


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_metadata(source: Source) -> str:
    """Category, tags (when present) and similarity, joined by " | "."""
    parts: List[str] = []
    if source.category:
        parts.append(f"Category: {source.category}")
    if source.tags:
        parts.append(f"Tags: {', '.join(source.tags)}")
    parts.append(f"Similarity: {_percent(source.similarity)}")
    return " | ".join(parts)


def build_context(sources: Sequence[Source]) -> str:
    """
    Format sources into a single context string with citation markers.

    Args:
        sources: Sources in ranked order (index + 1 = citation number).

    Returns:
        Blocks like "[1] Title (type)\\nCategory: ... | Similarity: 87.5%\\nSummary: ..."
        separated by a horizontal rule.
    """
    if not sources:
        return ""
    parts = []
    for i, s in enumerate(sources, 1):
        parts.append(
            f"[{i}] {s.title} ({s.type})\n"
            f"{format_metadata(s)}\n"
            f"Summary: {summarize_excerpts(s.excerpts)}"
        )
    return SEPARATOR.join(parts)


def _distinct(values: Sequence[Optional[str]]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def summarize_sources(sources: Sequence[Source]) -> str:
    """One line such as "Found 2 relevant document(s) (document, prompt) from categories: visa"."""
    summary = f"Found {len(sources)} relevant document(s)"
    types = _distinct([s.type for s in sources])
    if types:
        summary += f" ({', '.join(types)})"
    categories = _distinct([s.category for s in sources])
    if categories:
        summary += f" from categories: {', '.join(categories)}"
    return summary


def to_source(result: ScoredResult, query: str, max_excerpts: int) -> Source:
    return Source(
        id=result.id,
        title=result.title,
        type=result.type,
        category=result.category,
        tags=list(result.tags or []),
        similarity=result.score,
        excerpts=extract_excerpts(result.body, query, max_excerpts),
    )


def assemble(results: Sequence[ScoredResult], query: str, max_excerpts: int) -> RetrievalContext:
    """
    Turn ranked results into a RetrievalContext.

    Excerpts are chosen against the caller's original query, not the expanded
    variants that found the document. Result order is kept as given.
    """
    if not results:
        return RetrievalContext.empty(NO_CONTENT_SUMMARY)

    sources = [to_source(r, query, max_excerpts) for r in results]
    context = build_context(sources)
    average = sum(s.similarity for s in sources) / len(sources)
    summary = summarize_sources(sources)
    logger.info(
        "Assembled %s sources (%s characters), average similarity %s",
        len(sources),
        len(context),
        _percent(average),
    )
    return RetrievalContext(
        has_relevant_content=True,
        context=context,
        context_summary=summary,
        sources=sources,
        total_sources=len(sources),
        average_similarity=average,
    )
