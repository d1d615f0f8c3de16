"""
Select the sentences of a matched document that best overlap the query.
"""

from __future__ import annotations

import logging
import re
from typing import List

from .config import MAX_EXCERPTS_CEILING
from .utils import tokenize

logger = logging.getLogger(__name__)

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
MIN_SENTENCE_CHARS = 20


def split_sentences(text: str) -> List[str]:
    """Split on runs of . ! ? and keep stripped fragments of at least MIN_SENTENCE_CHARS."""
    sentences = (s.strip() for s in SENTENCE_SPLIT_RE.split(text or ""))
    return [s for s in sentences if len(s) >= MIN_SENTENCE_CHARS]


def extract_excerpts(body: str, query: str, max_excerpts: int) -> List[str]:
    """
    Return up to min(max_excerpts, MAX_EXCERPTS_CEILING) sentences from body.

    A sentence scores one point per distinct query word it contains as a
    case-insensitive substring; zero-score sentences are dropped and ties keep
    document order.
    """
    limit = min(max_excerpts, MAX_EXCERPTS_CEILING)
    if limit <= 0:
        return []
    query_words = list(dict.fromkeys(tokenize(query)))
    if not query_words:
        return []

    scored = []
    for sentence in split_sentences(body):
        lower = sentence.lower()
        score = sum(1 for word in query_words if word in lower)
        if score > 0:
            scored.append((sentence, score))

    scored.sort(key=lambda x: x[1], reverse=True)
    excerpts = [sentence for sentence, _ in scored[:limit]]
    logger.debug("Extracted %s excerpts for query %r", len(excerpts), query)
    return excerpts
