"""
Retrieval settings and the process-wide store operators update between requests.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

# Load .env file if it exists
project_root = Path(__file__).resolve().parents[2]
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

logger = logging.getLogger(__name__)

# Fallback step tried between the primary threshold and the floor.
FALLBACK_THRESHOLD = 0.45

# Hard ceiling on excerpts per document, independent of configuration.
MAX_EXCERPTS_CEILING = 8


@dataclass
class RetrievalSettings:
    """Configuration for retrieval; snapshot read once per call."""

    threshold: float = 0.6
    min_threshold: float = 0.35
    max_results: int = 5
    max_excerpts: int = 3
    # Passed through to the chat model; retrieval does not use it.
    temperature: float = 0.7


# Accepted (min, max) for operator updates; out-of-range values are ignored.
SETTINGS_BOUNDS: Dict[str, Tuple[float, float]] = {
    "threshold": (0.1, 0.9),
    "max_results": (1, 10),
    "max_excerpts": (1, MAX_EXCERPTS_CEILING),
    "temperature": (0.0, 2.0),
    "min_threshold": (0.1, 0.6),
}

_INT_FIELDS = {"max_results", "max_excerpts"}

ENV_VARS = {
    "threshold": "RAG_THRESHOLD",
    "max_results": "RAG_MAX_RESULTS",
    "max_excerpts": "RAG_MAX_EXCERPTS",
    "temperature": "RAG_TEMPERATURE",
    "min_threshold": "RAG_MIN_THRESHOLD",
}


def _valid(name: str, value: Any) -> bool:
    if name not in SETTINGS_BOUNDS or isinstance(value, bool):
        return False
    if name in _INT_FIELDS and not isinstance(value, int):
        return False
    if not isinstance(value, (int, float)):
        return False
    low, high = SETTINGS_BOUNDS[name]
    return low <= value <= high


class SettingsStore:
    """Thread-safe holder of the current RetrievalSettings; reads return copies."""

    def __init__(self, initial: Optional[RetrievalSettings] = None):
        self._current = dataclasses.replace(initial or RetrievalSettings())
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "SettingsStore":
        """Defaults overridden by RAG_* environment variables (not range-checked)."""
        values: Dict[str, Any] = {}
        for name, var in ENV_VARS.items():
            raw = os.getenv(var)
            if not raw:
                continue
            try:
                values[name] = int(raw) if name in _INT_FIELDS else float(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a number", var, raw)
        return cls(RetrievalSettings(**values))

    def get_settings(self) -> RetrievalSettings:
        with self._lock:
            return dataclasses.replace(self._current)

    def update_settings(self, **changes: Any) -> RetrievalSettings:
        """Apply the valid fields of changes; invalid or unknown fields are ignored."""
        accepted = {}
        for name, value in changes.items():
            if _valid(name, value):
                accepted[name] = value
            else:
                logger.warning("Ignoring invalid retrieval setting %s=%r", name, value)
        with self._lock:
            self._current = dataclasses.replace(self._current, **accepted)
            snapshot = dataclasses.replace(self._current)
        logger.info("Updated retrieval settings: %s", snapshot)
        return snapshot

    def reset_settings(self) -> RetrievalSettings:
        """Back to the built-in defaults; initial and RAG_* environment values are not kept."""
        with self._lock:
            self._current = RetrievalSettings()
            snapshot = dataclasses.replace(self._current)
        logger.info("Reset retrieval settings to defaults: %s", snapshot)
        return snapshot
