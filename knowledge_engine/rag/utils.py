"""
Tokenization shared by indexing and query processing.
"""

from __future__ import annotations

import re
from typing import List

NON_WORD_RE = re.compile(r"[^\w\s]")

# Title terms are repeated so a document whose subject matches the query
# outranks one that mentions the query words once in passing.
TITLE_WEIGHT = 3


def tokenize(text: str) -> List[str]:
    """Lowercase, replace punctuation with spaces, split, drop tokens of length <= 2."""
    if not text:
        return []
    cleaned = NON_WORD_RE.sub(" ", text.lower())
    return [tok for tok in cleaned.split() if len(tok) > 2]


def prepare_for_index(title: str, body: str) -> List[str]:
    """Token stream for a document: title tokens TITLE_WEIGHT times, then body tokens."""
    title_tokens = tokenize(title)
    return title_tokens * TITLE_WEIGHT + tokenize(body)
