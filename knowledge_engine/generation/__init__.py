"""
Context assembly for knowledge-base augmented prompts.

- Source metadata and the RetrievalContext outcome
- Context building with citation markers [1], [2], ...
- Prompt augmentation with the knowledge-base instructions block
"""

from .context_builder import (
    ERROR_SUMMARY,
    NO_CONTENT_SUMMARY,
    RetrievalContext,
    Source,
    assemble,
    build_context,
    format_metadata,
    summarize_excerpts,
    summarize_sources,
)
from .prompts import KNOWLEDGE_BLOCK, build_augmented_prompt

__all__ = [
    "RetrievalContext",
    "Source",
    "assemble",
    "build_context",
    "format_metadata",
    "summarize_excerpts",
    "summarize_sources",
    "build_augmented_prompt",
    "KNOWLEDGE_BLOCK",
    "NO_CONTENT_SUMMARY",
    "ERROR_SUMMARY",
]
