"""
Multi-query search that relaxes the similarity threshold until enough documents match.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import FALLBACK_THRESHOLD
from .errors import DimensionMismatchError, InfrastructureError
from .index import IndexedDocument
from .retriever import Ranker, ScoredResult

logger = logging.getLogger(__name__)

# A threshold step stops the search once this many distinct documents match.
MIN_MERGED_RESULTS = 2

QueryScores = Mapping[str, Sequence[Optional[float]]]


def threshold_steps(initial_threshold: float, min_threshold: float) -> List[float]:
    """[initial, FALLBACK_THRESHOLD, min_threshold], keeping only strictly decreasing values."""
    steps: List[float] = []
    for t in (initial_threshold, FALLBACK_THRESHOLD, min_threshold):
        if not steps or t < steps[-1]:
            steps.append(t)
    return steps


def _sorted_top(results: Sequence[ScoredResult], limit: int) -> List[ScoredResult]:
    # sorted() is stable, so ties keep their incoming order.
    return sorted(results, key=lambda r: r.score, reverse=True)[:limit]


@dataclass
class SearchTrace:
    """Merged result count at each threshold step tried, in order."""

    steps: List[Tuple[float, int]] = field(default_factory=list)

    def record(self, threshold: float, count: int) -> None:
        self.steps.append((threshold, count))

    @property
    def thresholds(self) -> List[float]:
        return [t for t, _ in self.steps]


@dataclass
class DynamicThresholdSearcher:
    """Runs expanded queries through a ranker over descending thresholds."""

    ranker: Ranker

    async def score_queries(
        self, queries: Sequence[str], corpus: Sequence[IndexedDocument]
    ) -> Dict[str, Sequence[Optional[float]]]:
        """
        Score every query once, concurrently.

        A query whose scoring fails is logged and dropped; the others still
        count. Dimension mismatches abort, and so does a failure of every query.
        """
        outcomes = await asyncio.gather(
            *(self.ranker.score(q, corpus) for q in queries),
            return_exceptions=True,
        )
        scores: Dict[str, Sequence[Optional[float]]] = {}
        failures: List[Exception] = []
        for query, outcome in zip(queries, outcomes):
            if isinstance(outcome, DimensionMismatchError):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning("Scoring failed for query %r with %s: %s", query, self.ranker.name, outcome)
                failures.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            scores[query] = outcome
        if failures and not scores:
            raise InfrastructureError("rank", f"all {len(failures)} queries failed") from failures[0]
        return scores

    def matches_for_query(
        self,
        scores: Sequence[Optional[float]],
        corpus: Sequence[IndexedDocument],
        threshold: float,
        max_results: int,
    ) -> List[ScoredResult]:
        """Documents scoring at or above threshold for one query, best first, at most max_results."""
        hits = [
            ScoredResult(document=doc, score=float(s), source=self.ranker.name)
            for doc, s in zip(corpus, scores)
            if s is not None and s >= threshold
        ]
        return _sorted_top(hits, max_results)

    def merge_at_threshold(
        self,
        query_scores: QueryScores,
        corpus: Sequence[IndexedDocument],
        threshold: float,
        max_results: int,
    ) -> List[ScoredResult]:
        """Merge per-query matches by document id, keeping each document's best score."""
        by_id: Dict[str, ScoredResult] = {}
        for query, scores in query_scores.items():
            matches = self.matches_for_query(scores, corpus, threshold, max_results)
            logger.debug("Query %r: %s matches at threshold %.2f", query, len(matches), threshold)
            for r in matches:
                existing = by_id.get(r.id)
                if existing is None or r.score > existing.score:
                    by_id[r.id] = r
        return list(by_id.values())

    async def search(
        self,
        expanded_queries: Sequence[str],
        corpus: Sequence[IndexedDocument],
        max_results: int,
        initial_threshold: float,
        min_threshold: float,
        trace: Optional[SearchTrace] = None,
    ) -> List[ScoredResult]:
        """
        Try each threshold step in order and stop at the first one where at
        least MIN_MERGED_RESULTS documents match. If none does, return what the
        lowest step produced.

        Returns:
            Deduplicated results sorted by score (descending), at most max_results.
        """
        if not corpus or not expanded_queries:
            return []
        query_scores = await self.score_queries(expanded_queries, corpus)

        merged: List[ScoredResult] = []
        for threshold in threshold_steps(initial_threshold, min_threshold):
            merged = self.merge_at_threshold(query_scores, corpus, threshold, max_results)
            if trace is not None:
                trace.record(threshold, len(merged))
            logger.info(
                "Threshold %.2f: %s unique documents across %s queries",
                threshold,
                len(merged),
                len(query_scores),
            )
            if len(merged) >= MIN_MERGED_RESULTS:
                return _sorted_top(merged, max_results)

        if not merged:
            logger.info("No documents matched even at the lowest threshold")
        return _sorted_top(merged, max_results)

    async def search_single(
        self,
        query: str,
        corpus: Sequence[IndexedDocument],
        max_results: int,
        threshold: float,
    ) -> List[ScoredResult]:
        """One query at one threshold, without expansion or relaxation."""
        if not corpus:
            return []
        scores = await self.ranker.score(query, corpus)
        return self.matches_for_query(scores, corpus, threshold, max_results)
