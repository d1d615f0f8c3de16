"""
Retrieval components for an owner's knowledge base:
- Tokenization and BM25 lexical ranking
- Cosine-similarity semantic ranking over stored embeddings
- Query expansion
- Dynamic-threshold multi-query search
- Excerpt extraction
"""

from .bm25 import BM25Index, LexicalRanker
from .config import RetrievalSettings, SettingsStore
from .dense import SemanticRanker, cosine_similarity, parse_vector
from .embeddings import EmbeddingProvider, OpenAIEmbedder, SentenceTransformerEmbedder
from .errors import (
    DimensionMismatchError,
    EmbeddingParseError,
    InfrastructureError,
    RetrievalError,
)
from .excerpts import extract_excerpts
from .index import IndexedDocument, documents_path, load_documents
from .query_expander import QueryExpander
from .retriever import Ranker, ScoredResult
from .store import DocumentStore, InMemoryDocumentStore, JsonlDocumentStore, SqlDocumentStore
from .threshold_search import DynamicThresholdSearcher, SearchTrace
from .utils import prepare_for_index, tokenize

__all__ = [
    "IndexedDocument",
    "load_documents",
    "documents_path",
    "tokenize",
    "prepare_for_index",
    "BM25Index",
    "LexicalRanker",
    "SemanticRanker",
    "cosine_similarity",
    "parse_vector",
    "EmbeddingProvider",
    "OpenAIEmbedder",
    "SentenceTransformerEmbedder",
    "QueryExpander",
    "DynamicThresholdSearcher",
    "SearchTrace",
    "extract_excerpts",
    "Ranker",
    "ScoredResult",
    "RetrievalSettings",
    "SettingsStore",
    "DocumentStore",
    "InMemoryDocumentStore",
    "JsonlDocumentStore",
    "SqlDocumentStore",
    "RetrievalError",
    "InfrastructureError",
    "EmbeddingParseError",
    "DimensionMismatchError",
]
