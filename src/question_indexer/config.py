from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Embedding capability (OpenAI-compatible)
    openai_api_key: SecretStr
    embedding_model: str = "text-embedding-3-small"
    embedding_encoding_format: str = "float"
    embedding_dimensions: Optional[int] = 1536  # must match the index dimension
    embedding_api_url: str = "https://api.openai.com/v1/embeddings"
    embedding_timeout: float = 30.0

    # Vector index service (Pinecone)
    pinecone_api_key: SecretStr
    pinecone_index_name: str = "cosmos-previous-questions"
    pinecone_index_host: Optional[str] = None
    pinecone_control_plane_url: str = "https://api.pinecone.io"
    pinecone_api_version: str = "2025-01"
    index_timeout: float = 30.0

    # Batch fan-out limit in front of both external services
    index_concurrency: int = 4

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
