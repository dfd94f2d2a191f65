"""
Embeddings Package

Question indexing pipeline: metadata sanitization, embedding, per-course
namespace resolution and writes to the Pinecone vector index.
"""

from .embedder import Embedder, EmbeddingError, EmbeddingDimensionError, build_embedding_text
from .indexer import QuestionIndexer
from .metadata import sanitize_metadata
from .models import (
    BatchReindexReport,
    IndexEntry,
    QuestionRecord,
    QuestionValidationError,
    UpsertResult,
    VectorMetadata,
)
from .namespaces import find_namespace_collisions, resolve_namespace
from .vector_index import VectorIndexClient

__all__ = [
    "Embedder",
    "EmbeddingError",
    "EmbeddingDimensionError",
    "build_embedding_text",
    "QuestionIndexer",
    "sanitize_metadata",
    "BatchReindexReport",
    "IndexEntry",
    "QuestionRecord",
    "QuestionValidationError",
    "UpsertResult",
    "VectorMetadata",
    "find_namespace_collisions",
    "resolve_namespace",
    "VectorIndexClient",
]
