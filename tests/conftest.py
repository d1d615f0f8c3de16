"""
Shared fixtures: a small immigration-guide knowledge base and stub collaborators.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from knowledge_engine.rag import IndexedDocument, InMemoryDocumentStore


OWNER = "user-1"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def sample_documents() -> list[IndexedDocument]:
    """Four documents whose titles share no terms with each other."""
    return [
        IndexedDocument(
            id="doc_001",
            title="Express Entry System",
            body=(
                "Express Entry is the main pathway for skilled workers who want permanent residence. "
                "Candidates receive a ranking score based on age, language and work experience. "
                "Invitations are issued in regular draws."
            ),
            type="document",
            category="Immigration",
            tags=["express-entry", "pr"],
            owner_id=OWNER,
        ),
        IndexedDocument(
            id="doc_002",
            title="Job Search Tips",
            body=(
                "Write your resume in the Canadian format and keep it to two pages. "
                "Networking with local employers often matters more than online applications."
            ),
            type="template",
            category="Employment",
            tags=["resume"],
            owner_id=OWNER,
        ),
        IndexedDocument(
            id="doc_003",
            title="Provincial Nominee Program",
            body=(
                "Provinces nominate candidates who match local labour market needs. "
                "A nomination adds a large bonus to a candidate profile."
            ),
            type="document",
            category="Immigration",
            tags=[],
            owner_id=OWNER,
        ),
        IndexedDocument(
            id="doc_004",
            title="Cost of Living",
            body="Housing and groceries cost more in large cities such as Toronto and Vancouver.",
            type="prompt",
            category=None,
            tags=[],
            owner_id=OWNER,
        ),
    ]


@pytest.fixture
def memory_store(sample_documents: list[IndexedDocument]) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(sample_documents)


class FixedScoreRanker:
    """Ranker returning preset scores per document id, optionally per query."""

    name = "fixed"

    def __init__(
        self,
        scores: Dict[str, float],
        per_query: Optional[Dict[str, Dict[str, float]]] = None,
        failing: Sequence[str] = (),
    ):
        self.scores = scores
        self.per_query = per_query or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    async def score(self, query: str, corpus: Sequence[IndexedDocument]) -> List[Optional[float]]:
        self.calls.append(query)
        if query in self.failing:
            raise RuntimeError(f"scoring failed for {query}")
        table = self.per_query.get(query, self.scores)
        return [table.get(doc.id) for doc in corpus]


class StubEmbedder:
    """Embedding provider returning a fixed vector (or raising)."""

    def __init__(self, vector: Sequence[float], error: Optional[Exception] = None):
        self.vector = list(vector)
        self.error = error
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vector)

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        return [await self.embed(t) for t in texts]


class FailingStore:
    """Document store whose backend is down."""

    def __init__(self, error: Exception):
        self.error = error

    async def list_active_documents(self, owner_id: str) -> List[IndexedDocument]:
        raise self.error
