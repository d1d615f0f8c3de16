"""
Embedding providers consumed by the semantic ranking path.

The engine only reads their numeric output; both adapters raise
InfrastructureError when the underlying model or API call fails.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
import time
from typing import List, Optional, Protocol, Sequence

from openai import OpenAI
from sentence_transformers import SentenceTransformer

from .errors import InfrastructureError

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
OPENAI_EMBEDDING_MODEL = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    async def embed(self, text: str) -> List[float]:
        ...

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class SentenceTransformerEmbedder:
    """Local sentence-transformers model; encoding runs in a worker thread."""

    def __init__(self, model_name: str = EMBEDDING_MODEL, model: SentenceTransformer | None = None):
        self.model_name = model_name
        self.model = model or SentenceTransformer(model_name)

    def _encode(self, texts: List[str]) -> List[List[float]]:
        emb = self.model.encode(
            texts,
            batch_size=64,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return [row.tolist() for row in emb]

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            return await asyncio.to_thread(self._encode, list(texts))
        except Exception as e:
            raise InfrastructureError("embed", f"{self.model_name} failed: {e}") from e


class OpenAIEmbedder:
    """OpenAI-compatible embeddings API with retry on rate limits."""

    def __init__(
        self,
        model_name: str = OPENAI_EMBEDDING_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: int = 3,
        client: OpenAI | None = None,
    ):
        self.model_name = model_name
        self.max_retries = max(1, max_retries)
        if client is None:
            key = api_key or os.getenv("EMBEDDING_API_KEY") or os.getenv("OPENAI_API_KEY")
            if not key:
                raise ValueError("API key required. Set EMBEDDING_API_KEY or OPENAI_API_KEY.")
            client = OpenAI(api_key=key, base_url=base_url or os.getenv("EMBEDDING_BASE_URL"))
        self.client = client

    def _create(self, texts: List[str]) -> List[List[float]]:
        retry_count = 0
        while True:
            try:
                start = time.time()
                response = self.client.embeddings.create(model=self.model_name, input=texts)
                logger.debug(
                    "Embedded %s texts with %s in %.0f ms",
                    len(texts),
                    self.model_name,
                    (time.time() - start) * 1000,
                )
                ordered = sorted(response.data, key=lambda d: d.index)
                return [list(d.embedding) for d in ordered]
            except Exception as e:
                error_str = str(e)
                retry_count += 1
                if "429" not in error_str and "rate limit" not in error_str.lower():
                    raise InfrastructureError("embed", f"{self.model_name} failed: {e}") from e
                if retry_count >= self.max_retries:
                    raise InfrastructureError(
                        "embed", f"rate limit exceeded after {self.max_retries} retries"
                    ) from e
                backoff = (2 ** retry_count) + random.uniform(0, 1)
                logger.warning(
                    "Embedding rate limit hit. Retrying in %s s (attempt %s/%s)",
                    round(backoff, 1),
                    retry_count,
                    self.max_retries,
                )
                time.sleep(backoff)

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._create, list(texts))
