"""
Utility script for seeding the knowledge_documents table from a JSONL file.

Two modes:
- Default (dry-run): summarize the documents file
  (counts by owner, type and category), no DB writes.
- Apply mode (--apply): create the table if needed and insert documents
  whose slug is not already present.

Usage:
  python -m scripts.seed_documents [--path data/documents.jsonl] [--apply]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
from collections import Counter
from pathlib import Path
from typing import Dict, List

from sqlalchemy import select

from knowledge_engine.db.models import Base, KnowledgeDocument
from knowledge_engine.db.session import create_db_engine, create_session_factory
from knowledge_engine.rag.index import DOCUMENT_TYPES, documents_path


_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _slugify(text: str, *, max_len: int = 200) -> str:
    cleaned = _NON_ALNUM_RE.sub("-", text.strip().lower()).strip("-")
    if not cleaned:
        return "untitled"
    return cleaned[:max_len].rstrip("-")


def load_rows(path: Path) -> List[Dict]:
    rows: List[Dict] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or line.startswith("//"):
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                # Ignore malformed lines in dry-run mode
                continue
    return rows


def summarize_rows(rows: List[Dict]) -> None:
    total = len(rows)
    print(f"Loaded {total} documents")
    if total == 0:
        return

    for label, key in (("owner_id", "owner_id"), ("type", "type"), ("category", "category")):
        counts: Counter = Counter(str(r.get(key) or "unknown") for r in rows)
        print(f"\nBy {label}:")
        for value, count in sorted(counts.items(), key=lambda x: x[0]):
            pct = (count / total) * 100
            print(f"  {value:24s}: {count:5d} ({pct:5.1f}%)")

    with_vectors = sum(1 for r in rows if r.get("embedding"))
    print(f"\nWith embeddings: {with_vectors}/{total}")


def to_model(row: Dict) -> KnowledgeDocument | None:
    owner_id = row.get("owner_id")
    title = row.get("title")
    content = row.get("content", row.get("body"))
    if not owner_id or not title or not content:
        return None
    doc_type = row.get("type") or "document"
    embedding = row.get("embedding")
    if embedding is not None and not isinstance(embedding, str):
        embedding = json.dumps(embedding)
    fields = dict(
        owner_id=str(owner_id),
        title=title,
        slug=row.get("slug") or _slugify(title),
        content=content,
        type=doc_type if doc_type in DOCUMENT_TYPES else "document",
        category=row.get("category"),
        tags=row.get("tags") or [],
        embedding=embedding,
        is_active=bool(row.get("is_active", True)),
    )
    if row.get("id"):
        fields["id"] = str(row["id"])
    return KnowledgeDocument(**fields)


async def apply_seed(rows: List[Dict], database_url: str | None = None) -> None:
    """
    Create the table (if missing) and insert documents not already present by slug.
    """
    if not rows:
        print("No documents to seed.")
        return

    engine = create_db_engine(database_url)
    factory = create_session_factory(engine=engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    inserted = 0
    skipped_existing = 0
    skipped_incomplete = 0

    async with factory() as session:
        result = await session.execute(select(KnowledgeDocument.slug))
        existing = set(result.scalars().all())

        for row in rows:
            doc = to_model(row)
            if doc is None:
                skipped_incomplete += 1
                continue
            if doc.slug in existing:
                skipped_existing += 1
                continue
            session.add(doc)
            existing.add(doc.slug)
            inserted += 1

        if inserted > 0:
            await session.commit()

    print("\nSeeding complete.")
    print(f"  Inserted documents:    {inserted}")
    print(f"  Skipped existing:      {skipped_existing}")
    print(f"  Skipped incomplete:    {skipped_incomplete}")
    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed knowledge documents from JSONL.")
    parser.add_argument("--path", type=Path, default=None, help="JSONL documents file (default: DOCUMENTS_PATH or data/documents.jsonl)")
    parser.add_argument("--apply", action="store_true", help="Write to the database (default: dry-run)")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args()

    rows = load_rows(args.path or documents_path())
    summarize_rows(rows)
    if args.apply:
        asyncio.run(apply_seed(rows, args.database_url))


if __name__ == "__main__":
    main()
