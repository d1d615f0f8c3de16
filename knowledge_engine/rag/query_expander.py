"""
Rule-based query expansion: normalization, keyword fragments, translations.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)

# Short or colloquial Vietnamese phrasings mapped to the fuller questions the
# knowledge base (Canadian immigration guides) is written against.
DEFAULT_NORMALIZATIONS: Dict[str, str] = {
    "năm": "Bạn đã sống và làm việc ở Canada bao nhiêu năm",
    "bao nhiêu năm": "Bạn đã sống và làm việc ở Canada bao nhiêu năm",
    "canada": "thông tin về Canada định cư",
    "định cư": "thông tin về định cư Canada",
    "express entry": "chương trình Express Entry Canada",
    "pnp": "chương trình Provincial Nominee Program",
    "việc làm": "tìm việc làm ở Canada",
    "cv": "viết CV theo chuẩn Canada",
}

DEFAULT_TRANSLATIONS: Dict[str, str] = {
    "định cư": "immigration",
    "canada": "canada",
    "việc làm": "job employment work",
    "năm": "years year",
    "kinh nghiệm": "experience",
}


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


@dataclass
class QueryExpander:
    """Expand a raw query into ordered, deduplicated variants to broaden recall."""

    normalizations: Dict[str, str] | None = None
    translations: Dict[str, str] | None = None

    def __post_init__(self) -> None:
        """Fall back to the default tables when none are provided."""
        if self.normalizations is None:
            self.normalizations = dict(DEFAULT_NORMALIZATIONS)
        if self.translations is None:
            self.translations = dict(DEFAULT_TRANSLATIONS)

    @classmethod
    def from_json(cls, path: Path) -> "QueryExpander":
        """Load tables from a JSON file with optional "normalizations" and "translations" objects."""
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(
            normalizations=data.get("normalizations"),
            translations=data.get("translations"),
        )

    def normalize(self, query: str) -> str:
        """Replace the query with the canonical form of the first table phrase it contains."""
        lower = query.lower().strip()
        for phrase, canonical in (self.normalizations or {}).items():
            if phrase in lower:
                logger.debug("Normalizing query %r to %r", query, canonical)
                return canonical
        return query

    def expand(self, query: str) -> List[str]:
        """
        Return query variants, original first.

        Order: original, normalized, single keywords (when more than one),
        adjacent bigrams (when more than two), translations.
        """
        normalized = self.normalize(query)
        queries = [query, normalized]

        base = normalized.lower()
        words = [w for w in base.split() if len(w) > 2]
        if len(words) > 1:
            queries.extend(words)
            if len(words) > 2:
                queries.extend(f"{words[i]} {words[i + 1]}" for i in range(len(words) - 1))

        for term, translated in (self.translations or {}).items():
            if term in base:
                queries.append(translated)

        expanded = _dedupe(queries)
        logger.debug("Expanded %r into %s queries: %s", query, len(expanded), expanded)
        return expanded
