"""
Core document records and loading utilities for the knowledge base.
"""

from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .utils import prepare_for_index


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DOCUMENTS_PATH = ROOT / "data" / "documents.jsonl"

DOCUMENT_TYPES = ("prompt", "template", "document", "config")

RawVector = Union[Sequence[float], str]


def documents_path() -> Path:
    """JSONL documents file; DOCUMENTS_PATH (environment or .env) overrides the bundled sample."""
    return Path(os.getenv("DOCUMENTS_PATH", str(DEFAULT_DOCUMENTS_PATH)))


@dataclasses.dataclass
class IndexedDocument:
    """A single retrievable document from an owner's knowledge base."""

    id: str
    title: str
    body: str
    type: str = "document"
    category: Optional[str] = None
    tags: List[str] = dataclasses.field(default_factory=list)
    # Precomputed embedding, as a list of floats or the JSON string it was persisted as.
    vector: Optional[RawVector] = None
    owner_id: Optional[str] = None

    @property
    def token_stream(self) -> List[str]:
        return prepare_for_index(self.title, self.body)

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "IndexedDocument":
        """Build a document from a stored record (accepts `content` or `body`)."""
        tags = obj.get("tags") or []
        doc_type = obj.get("type") or "document"
        return cls(
            id=str(obj["id"]),
            title=obj.get("title", ""),
            body=obj.get("body", obj.get("content", "")) or "",
            type=doc_type if doc_type in DOCUMENT_TYPES else "document",
            category=obj.get("category") or None,
            tags=[str(t) for t in tags],
            vector=obj.get("embedding", obj.get("vector")),
            owner_id=str(obj["owner_id"]) if obj.get("owner_id") is not None else None,
        )


def load_documents(
    path: Path | None = None,
    owner_id: Optional[str] = None,
    include_inactive: bool = False,
) -> List[IndexedDocument]:
    """Load documents from a JSONL file. If owner_id is set, only that owner's documents are loaded."""
    if path is None:
        path = documents_path()
    if not path.exists():
        raise FileNotFoundError(f"documents file not found at {path}")

    documents: List[IndexedDocument] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            obj = json.loads(line)
            if not include_inactive and not obj.get("is_active", True):
                continue
            if owner_id is not None and str(obj.get("owner_id")) != owner_id:
                continue
            documents.append(IndexedDocument.from_dict(obj))
    return documents

