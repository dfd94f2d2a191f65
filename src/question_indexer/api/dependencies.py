"""
Composition root: the only place process-wide clients are built from settings.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ..config import settings
from ..embeddings.embedder import Embedder
from ..embeddings.indexer import QuestionIndexer
from ..embeddings.vector_index import VectorIndexClient


@lru_cache
def get_embedder() -> Embedder:
    return Embedder(
        api_key=settings.openai_api_key.get_secret_value(),
        model=settings.embedding_model,
        base_url=settings.embedding_api_url,
        encoding_format=settings.embedding_encoding_format,
        dimensions=settings.embedding_dimensions,
        timeout=settings.embedding_timeout,
    )


@lru_cache
def get_vector_index() -> VectorIndexClient:
    return VectorIndexClient(
        api_key=settings.pinecone_api_key.get_secret_value(),
        index_name=settings.pinecone_index_name,
        index_host=settings.pinecone_index_host,
        control_plane_url=settings.pinecone_control_plane_url,
        api_version=settings.pinecone_api_version,
        timeout=settings.index_timeout,
    )


def get_indexer(
    embedder: Annotated[Embedder, Depends(get_embedder)],
    vector_index: Annotated[VectorIndexClient, Depends(get_vector_index)],
) -> QuestionIndexer:
    # Stateless, so a fresh instance per request is free
    return QuestionIndexer(
        embedder=embedder,
        vector_index=vector_index,
        concurrency=settings.index_concurrency,
    )
