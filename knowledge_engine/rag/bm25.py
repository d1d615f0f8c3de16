"""
BM25 lexical ranking over an owner's documents.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rank_bm25 import BM25Okapi

from .index import IndexedDocument
from .utils import tokenize

logger = logging.getLogger(__name__)

K1 = 1.2
B = 0.75


class UnclampedBM25(BM25Okapi):
    """
    Okapi BM25 with the plain idf = ln((N - df + 0.5) / (df + 0.5)).

    BM25Okapi replaces negative IDF values (terms present in more than half of
    the documents) with a fraction of the average IDF; here they are kept as is.
    """

    def __init__(self, corpus: List[List[str]], k1: float = K1, b: float = B):
        super().__init__(corpus, k1=k1, b=b)

    def _calc_idf(self, nd: dict) -> None:
        for word, freq in nd.items():
            self.idf[word] = math.log((self.corpus_size - freq + 0.5) / (freq + 0.5))
        self.average_idf = sum(self.idf.values()) / len(self.idf) if self.idf else 0.0


@dataclass
class BM25Index:
    """BM25 index over a document set; built per retrieval call, never persisted."""

    bm25: Optional[UnclampedBM25]
    documents: List[IndexedDocument]

    @classmethod
    def from_documents(cls, documents: Sequence[IndexedDocument]) -> "BM25Index":
        """Build BM25 index from documents (title-weighted token streams)."""
        documents = list(documents)
        token_streams = [doc.token_stream for doc in documents]
        # rank_bm25 divides by the corpus size and the average length.
        if not any(token_streams):
            return cls(bm25=None, documents=documents)
        logger.debug("Building BM25 index over %s documents", len(documents))
        return cls(bm25=UnclampedBM25(token_streams), documents=documents)

    def get_scores(self, query_tokens: Sequence[str]) -> List[float]:
        """Raw BM25 scores aligned with the document list."""
        if self.bm25 is None or not query_tokens:
            return [0.0] * len(self.documents)
        return [float(s) for s in self.bm25.get_scores(list(query_tokens))]

    def search(self, query: str, limit: int = 5) -> List[Tuple[IndexedDocument, float]]:
        """Search for the top documents with a positive raw score."""
        scores = self.get_scores(tokenize(query))
        indexed_scores = [(i, s) for i, s in enumerate(scores) if s > 0]
        indexed_scores.sort(key=lambda x: x[1], reverse=True)
        return [(self.documents[i], s) for i, s in indexed_scores[:limit]]


class LexicalRanker:
    """
    Ranker over BM25 scores normalized by the top score of each query.

    Documents with no positive raw score are not candidates (None). The index
    is rebuilt whenever a different corpus object is passed, so one ranker
    instance serves all expanded queries of a single retrieval call.
    """

    name = "bm25"

    def __init__(self) -> None:
        self._corpus: Optional[Sequence[IndexedDocument]] = None
        self._index: Optional[BM25Index] = None

    def _index_for(self, corpus: Sequence[IndexedDocument]) -> BM25Index:
        if self._index is None or self._corpus is not corpus:
            self._index = BM25Index.from_documents(corpus)
            self._corpus = corpus
        return self._index

    async def score(
        self, query: str, corpus: Sequence[IndexedDocument]
    ) -> List[Optional[float]]:
        index = self._index_for(corpus)
        query_tokens = tokenize(query)
        raw = index.get_scores(query_tokens)
        top = max(raw, default=0.0)
        logger.debug("BM25 query %r tokens=%s top=%.3f", query, query_tokens, top)
        if top <= 0:
            return [None] * len(raw)
        return [s / top if s > 0 else None for s in raw]
