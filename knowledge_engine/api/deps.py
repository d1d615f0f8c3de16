"""
Build the knowledge engine for the API (used in lifespan).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from knowledge_engine.db.session import create_session_factory
from knowledge_engine.orchestrator import KnowledgeEngine
from knowledge_engine.rag import (
    DocumentStore,
    EmbeddingProvider,
    JsonlDocumentStore,
    OpenAIEmbedder,
    QueryExpander,
    SentenceTransformerEmbedder,
    SettingsStore,
    SqlDocumentStore,
)

logger = logging.getLogger(__name__)


def build_store(kind: Optional[str] = None) -> DocumentStore:
    """KNOWLEDGE_STORE=jsonl (default, reads DOCUMENTS_PATH) or sql (reads DATABASE_URL)."""
    kind = (kind or os.getenv("KNOWLEDGE_STORE", "jsonl")).lower()
    if kind == "jsonl":
        return JsonlDocumentStore()
    if kind == "sql":
        return SqlDocumentStore(create_session_factory())
    raise ValueError(f"Unknown KNOWLEDGE_STORE {kind!r}; expected 'jsonl' or 'sql'")


def build_embedder(provider: Optional[str] = None) -> EmbeddingProvider:
    """EMBEDDING_PROVIDER=sentence-transformers (default) or openai."""
    provider = (provider or os.getenv("EMBEDDING_PROVIDER", "sentence-transformers")).lower()
    if provider == "openai":
        return OpenAIEmbedder()
    if provider == "sentence-transformers":
        return SentenceTransformerEmbedder()
    raise ValueError(f"Unknown EMBEDDING_PROVIDER {provider!r}")


def build_expander() -> QueryExpander:
    """Default tables, or QUERY_EXPANSION_PATH when set."""
    path = os.getenv("QUERY_EXPANSION_PATH")
    if path:
        return QueryExpander.from_json(Path(path))
    return QueryExpander()


def build_engine() -> tuple[KnowledgeEngine, str]:
    """
    Build store, settings, expander and (for semantic ranking) the embedder.
    Returns (engine, store_kind).
    """
    store_kind = os.getenv("KNOWLEDGE_STORE", "jsonl").lower()
    ranking = os.getenv("RAG_RANKING", "lexical").lower()
    embedder = build_embedder() if ranking == "semantic" else None
    engine = KnowledgeEngine(
        store=build_store(store_kind),
        settings_store=SettingsStore.from_env(),
        embedder=embedder,
        expander=build_expander(),
        ranking=ranking,
    )
    logger.info("Knowledge engine ready: store=%s ranking=%s", store_kind, ranking)
    return engine, store_kind
