"""
Embedding Client

This module implements a test-friendly embedding client for question text
using the OpenAI embeddings API (or any compatible provider). It is
responsible for:

- Building the embedding input from a question and its optional description
- Network and transport error isolation
- Strict response validation, including vector dimensionality

Each call embeds exactly one question with one request. There is no caching
and no internal retry; any failure surfaces as ``EmbeddingError`` and the
caller decides whether to retry the whole operation.
"""

from __future__ import annotations

from typing import List, Optional
import logging
import httpx

logger = logging.getLogger("qindex.embedder")


EMBEDDING_TEXT_SEPARATOR = " | "


class EmbeddingError(RuntimeError):
    """Raised when embedding generation fails."""


class EmbeddingDimensionError(EmbeddingError):
    """Raised when the returned vector length differs from the configured dimension."""


def build_embedding_text(
    question: str,
    has_description: bool,
    description: Optional[str],
) -> str:
    """
    Join the semantically relevant fields: question first, then the
    description only when it is flagged and non-empty.
    """
    parts = [question]
    if has_description and description:
        parts.append(description)
    return EMBEDDING_TEXT_SEPARATOR.join(p for p in parts if p)


class Embedder:
    """
    Asynchronous embedding generator for single questions.

    Configuration is passed explicitly; the class holds no connection state
    and is safe to reuse across concurrent requests.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1/embeddings",
        encoding_format: str = "float",
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : str
            Bearer token for the embeddings API.

        model : str
            Embedding model identifier.

        base_url : str
            Full URL of the embeddings endpoint.

        encoding_format : str
            Requested vector encoding. Only "float" yields a numeric list.

        dimensions : Optional[int]
            Expected vector length. When set, any other length is a fatal
            configuration error.

        timeout : float
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the API.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.encoding_format = encoding_format
        self.dimensions = dimensions
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(
        self,
        question: str,
        has_description: bool = False,
        description: Optional[str] = None,
    ) -> List[float]:
        """
        Generate the embedding for one question.

        Returns
        -------
        List[float]
            The vector exactly as produced by the provider.

        Raises
        ------
        EmbeddingError
            If the request fails, times out, or the response is malformed.
        """
        text = build_embedding_text(question, has_description, description)
        return await self.embed_text(text)

    async def embed_text(self, text: str) -> List[float]:
        """
        Generate the embedding for an already assembled input string.
        """
        if not text:
            raise EmbeddingError("Cannot embed empty text.")

        payload = {
            "model": self.model,
            "input": text,
            "encoding_format": self.encoding_format,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self.base_url,
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): model=%s, chars=%d, error=%s",
                    type(exc).__name__,
                    self.model,
                    len(text),
                    str(exc),
                )
                raise EmbeddingError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

            try:
                data = response.json()
            except ValueError as exc:
                raise EmbeddingError("Embedding response is not valid JSON.") from exc

        vector = self._extract_embedding(data)
        self._check_dimensions(vector)
        return vector

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_dimensions(self, vector: List[float]) -> None:
        if self.dimensions is not None and len(vector) != self.dimensions:
            logger.error(
                "Embedding dimension mismatch: model=%s returned %d, expected %d",
                self.model,
                len(vector),
                self.dimensions,
            )
            raise EmbeddingDimensionError(
                f"Embedding has {len(vector)} dimensions, "
                f"index expects {self.dimensions}."
            )

    @staticmethod
    def _extract_embedding(data: dict) -> List[float]:
        """
        Parse and validate the first embedding in the response.

        OpenAI returns:
            { "data": [ {"embedding": [...]}, ... ] }

        Raises
        ------
        EmbeddingError
            If the API returns unexpected structure.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list) or not records:
            raise EmbeddingError("'data' field must be a non-empty list.")

        record = records[0]
        if not isinstance(record, dict) or "embedding" not in record:
            raise EmbeddingError(f"Malformed embedding record: {record!r}")

        emb = record["embedding"]
        if (
            not isinstance(emb, list)
            or not emb
            or not all(
                isinstance(x, (float, int)) and not isinstance(x, bool) for x in emb
            )
        ):
            raise EmbeddingError("Invalid embedding vector: must be a non-empty float list.")

        return [float(x) for x in emb]
