"""
Ranker interface and scored results shared by the lexical and semantic paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .index import IndexedDocument


@dataclass
class ScoredResult:
    """A document matched by a ranker, with its (pseudo-)similarity."""

    document: IndexedDocument
    score: float
    source: str

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def body(self) -> str:
        return self.document.body

    @property
    def type(self) -> str:
        return self.document.type

    @property
    def category(self) -> Optional[str]:
        return self.document.category

    @property
    def tags(self) -> List[str]:
        return self.document.tags


class Ranker(Protocol):
    """Protocol for ranking implementations."""

    name: str

    async def score(
        self, query: str, corpus: Sequence[IndexedDocument]
    ) -> List[Optional[float]]:
        """
        Score every document in the corpus against the query.

        Args:
            query: Query string (one expanded variant)
            corpus: Documents to rank, in candidate order

        Returns:
            One entry per document, aligned with the corpus. None means the
            document is not a candidate for this query (no lexical match, or
            no usable vector).
        """
        ...
