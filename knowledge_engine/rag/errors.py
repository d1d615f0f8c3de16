"""
Exceptions raised inside the retrieval engine.

The engine facade catches every one of these and degrades to an empty
RetrievalContext; they only surface to code that uses the components directly.
"""

from __future__ import annotations


class RetrievalError(Exception):
    """Base class for retrieval failures."""


class InfrastructureError(RetrievalError):
    """A storage or embedding-provider call failed."""

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step


class EmbeddingParseError(RetrievalError, ValueError):
    """A persisted embedding could not be parsed into floats."""


class DimensionMismatchError(RetrievalError, ValueError):
    """Query and document vectors have different lengths (embedding model mismatch)."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vectors must have the same length ({expected} vs {actual})")
        self.expected = expected
        self.actual = actual
