"""
Document stores: where an owner's active documents come from for each call.

The engine performs no authorization; a store must only return documents the
owner is entitled to see.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowledge_engine.db.models import KnowledgeDocument

from .errors import InfrastructureError
from .index import IndexedDocument, load_documents

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Protocol for document storage collaborators."""

    async def list_active_documents(self, owner_id: str) -> List[IndexedDocument]:
        ...


class InMemoryDocumentStore:
    """Documents held in memory, grouped by owner."""

    def __init__(self, documents: Optional[Iterable[IndexedDocument]] = None):
        self._by_owner: dict[str, List[IndexedDocument]] = {}
        for doc in documents or []:
            self.add(doc)

    def add(self, document: IndexedDocument, owner_id: Optional[str] = None) -> None:
        owner = owner_id or document.owner_id
        if owner is None:
            raise ValueError(f"Document {document.id} has no owner_id")
        document.owner_id = owner
        self._by_owner.setdefault(owner, []).append(document)

    async def list_active_documents(self, owner_id: str) -> List[IndexedDocument]:
        return list(self._by_owner.get(owner_id, []))


class JsonlDocumentStore:
    """Documents read from a JSONL file on every call, so edits show up without a restart."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path

    async def list_active_documents(self, owner_id: str) -> List[IndexedDocument]:
        try:
            return await asyncio.to_thread(load_documents, self.path, owner_id)
        except (OSError, ValueError, KeyError) as e:
            raise InfrastructureError("fetch_documents", str(e)) from e


def _to_indexed(row: KnowledgeDocument) -> IndexedDocument:
    return IndexedDocument(
        id=str(row.id),
        title=row.title,
        body=row.content,
        type=row.type,
        category=row.category,
        tags=list(row.tags or []),
        vector=row.embedding,
        owner_id=row.owner_id,
    )


class SqlDocumentStore:
    """Documents from the knowledge_documents table through an async SQLAlchemy session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_active_documents(self, owner_id: str) -> List[IndexedDocument]:
        stmt = (
            select(KnowledgeDocument)
            .where(
                KnowledgeDocument.owner_id == owner_id,
                KnowledgeDocument.is_active.is_(True),
            )
            .order_by(KnowledgeDocument.created_at)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except Exception as e:
            raise InfrastructureError("fetch_documents", str(e)) from e
        logger.info("Fetched %s active documents for owner %s", len(rows), owner_id)
        return [_to_indexed(row) for row in rows]
