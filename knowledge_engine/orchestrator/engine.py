"""
Knowledge engine: fetch an owner's documents, rank them against a query, and
assemble an attributable context block for a downstream language model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from knowledge_engine.generation.context_builder import (
    ERROR_SUMMARY,
    NO_CONTENT_SUMMARY,
    RetrievalContext,
    assemble,
)
from knowledge_engine.generation.prompts import build_augmented_prompt
from knowledge_engine.rag.bm25 import LexicalRanker
from knowledge_engine.rag.config import RetrievalSettings, SettingsStore
from knowledge_engine.rag.dense import SemanticRanker
from knowledge_engine.rag.embeddings import EmbeddingProvider
from knowledge_engine.rag.errors import InfrastructureError
from knowledge_engine.rag.index import IndexedDocument
from knowledge_engine.rag.query_expander import QueryExpander
from knowledge_engine.rag.retriever import Ranker, ScoredResult
from knowledge_engine.rag.store import DocumentStore
from knowledge_engine.rag.threshold_search import DynamicThresholdSearcher, SearchTrace

logger = logging.getLogger(__name__)

RANKINGS = ("lexical", "semantic")

BASIC_THRESHOLD = 0.65
BASIC_MAX_RESULTS = 5


@dataclass
class AugmentedPrompt:
    """Prompt with the knowledge-base block appended, and the context behind it."""

    prompt: str
    context: RetrievalContext


class KnowledgeEngine:
    """
    Retrieval façade. Callers never see an exception: any failure while
    fetching, embedding or ranking is logged and returned as an empty context.
    """

    def __init__(
        self,
        store: DocumentStore,
        settings_store: Optional[SettingsStore] = None,
        embedder: Optional[EmbeddingProvider] = None,
        expander: Optional[QueryExpander] = None,
        ranking: str = "lexical",
    ):
        if ranking not in RANKINGS:
            raise ValueError(f"Unknown ranking {ranking!r}; expected one of {RANKINGS}")
        self.store = store
        self.settings_store = settings_store or SettingsStore()
        self.embedder = embedder
        self.expander = expander or QueryExpander()
        self.ranking = ranking

    def _make_ranker(self, ranking: Optional[str]) -> Ranker:
        """Fresh ranker per call, so no index outlives a request."""
        ranking = ranking or self.ranking
        if ranking == "lexical":
            return LexicalRanker()
        if ranking == "semantic":
            if self.embedder is None:
                raise ValueError("Semantic ranking requires an embedding provider")
            return SemanticRanker(self.embedder)
        raise ValueError(f"Unknown ranking {ranking!r}; expected one of {RANKINGS}")

    async def _fetch(self, owner_id: str) -> List[IndexedDocument]:
        try:
            documents = await self.store.list_active_documents(owner_id)
        except InfrastructureError:
            raise
        except Exception as e:
            raise InfrastructureError("fetch_documents", str(e)) from e
        logger.info("Loaded %s active documents for owner %s", len(documents), owner_id)
        return documents

    def _finish(self, results: List[ScoredResult], query: str, settings: RetrievalSettings) -> RetrievalContext:
        if not results:
            logger.info("No relevant content found for query %r", query)
            return RetrievalContext.empty(NO_CONTENT_SUMMARY)
        for i, r in enumerate(results, 1):
            logger.debug("  %s. %r %.1f%% (%s)", i, r.title, r.score * 100, r.source)
        return assemble(results, query, settings.max_excerpts)

    async def retrieve(
        self,
        query: str,
        owner_id: str,
        threshold: Optional[float] = None,
        max_results: Optional[int] = None,
        ranking: Optional[str] = None,
        trace: Optional[SearchTrace] = None,
    ) -> RetrievalContext:
        """
        Expanded multi-query search with a relaxing threshold.

        Args:
            query: User message
            owner_id: Whose documents to search
            threshold: Initial threshold (defaults to the current settings)
            max_results: Maximum documents returned (defaults to the current settings)
            ranking: "lexical" or "semantic" (defaults to the engine's ranking)
            trace: Optional SearchTrace filled with per-step merged counts

        Returns:
            RetrievalContext; empty when nothing matched or a step failed.
        """
        settings = self.settings_store.get_settings()
        threshold = settings.threshold if threshold is None else threshold
        max_results = settings.max_results if max_results is None else max_results
        step = "fetch_documents"
        try:
            corpus = await self._fetch(owner_id)
            if not corpus:
                return RetrievalContext.empty(NO_CONTENT_SUMMARY)

            step = "expand"
            queries = self.expander.expand(query)
            logger.info("Searching %s expanded queries for owner %s", len(queries), owner_id)

            step = "rank"
            searcher = DynamicThresholdSearcher(self._make_ranker(ranking))
            results = await searcher.search(
                queries,
                corpus,
                max_results=max_results,
                initial_threshold=threshold,
                min_threshold=settings.min_threshold,
                trace=trace,
            )

            step = "assemble"
            return self._finish(results, query, settings)
        except Exception as e:
            failed = e.step if isinstance(e, InfrastructureError) else step
            logger.exception(
                "Retrieval failed at %s for owner %s, query %r", failed, owner_id, query
            )
            return RetrievalContext.empty(ERROR_SUMMARY)

    async def retrieve_basic(
        self,
        query: str,
        owner_id: str,
        threshold: float = BASIC_THRESHOLD,
        max_results: int = BASIC_MAX_RESULTS,
    ) -> RetrievalContext:
        """Single query at a single threshold; no expansion, no relaxation."""
        settings = self.settings_store.get_settings()
        step = "fetch_documents"
        try:
            corpus = await self._fetch(owner_id)
            if not corpus:
                return RetrievalContext.empty(NO_CONTENT_SUMMARY)

            step = "rank"
            searcher = DynamicThresholdSearcher(self._make_ranker(None))
            results = await searcher.search_single(query, corpus, max_results, threshold)

            step = "assemble"
            return self._finish(results, query, settings)
        except Exception as e:
            failed = e.step if isinstance(e, InfrastructureError) else step
            logger.exception(
                "Basic retrieval failed at %s for owner %s, query %r", failed, owner_id, query
            )
            return RetrievalContext.empty(ERROR_SUMMARY)

    async def process_message(
        self,
        base_prompt: str,
        query: str,
        owner_id: str,
        use_advanced: bool = True,
    ) -> AugmentedPrompt:
        """Retrieve context for the message and append it to base_prompt."""
        if use_advanced:
            context = await self.retrieve(query, owner_id)
        else:
            context = await self.retrieve_basic(query, owner_id)
        if context.has_relevant_content:
            logger.info(
                "Augmenting prompt with %s sources: %s",
                context.total_sources,
                context.context_summary,
            )
        prompt = build_augmented_prompt(base_prompt, context, query)
        logger.debug("Augmented prompt is %s characters", len(prompt))
        return AugmentedPrompt(prompt=prompt, context=context)
