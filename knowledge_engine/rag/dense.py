"""
Semantic ranking by cosine similarity over precomputed document embeddings.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

import numpy as np

from .embeddings import EmbeddingProvider
from .errors import DimensionMismatchError, EmbeddingParseError
from .index import IndexedDocument, RawVector

logger = logging.getLogger(__name__)


def parse_vector(raw: RawVector) -> np.ndarray:
    """Parse a stored embedding (list of numbers or JSON string) into a float vector."""
    try:
        if isinstance(raw, str):
            raw = json.loads(raw)
        vector = np.asarray(raw, dtype=float)
    except (TypeError, ValueError) as e:
        raise EmbeddingParseError(f"Unparseable embedding: {e}") from e
    if vector.ndim != 1 or vector.size == 0:
        raise EmbeddingParseError(f"Embedding must be a non-empty flat list, got shape {vector.shape}")
    return vector


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; raises DimensionMismatchError on length mismatch."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise DimensionMismatchError(va.size, vb.size)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


class SemanticRanker:
    """Ranker comparing a query embedding against each document's stored vector."""

    name = "semantic"

    def __init__(self, embedder: EmbeddingProvider):
        self.embedder = embedder

    async def score(
        self, query: str, corpus: Sequence[IndexedDocument]
    ) -> List[Optional[float]]:
        query_vector = np.asarray(await self.embedder.embed(query), dtype=float)
        scores: List[Optional[float]] = []
        for doc in corpus:
            if doc.vector is None:
                scores.append(None)
                continue
            try:
                doc_vector = parse_vector(doc.vector)
            except EmbeddingParseError as e:
                logger.warning("Skipping document %s (%r): %s", doc.id, doc.title, e)
                scores.append(None)
                continue
            scores.append(cosine_similarity(query_vector, doc_vector))
        return scores
