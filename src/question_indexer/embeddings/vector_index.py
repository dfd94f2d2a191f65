"""
Vector Index Client

This module implements upsert and delete of single question vectors against a
namespaced Pinecone index over its REST data plane.

Key Properties
--------------
- Explicit ID management: the caller supplies the vector id
- Overwrite-by-id upserts (re-indexing never duplicates)
- Idempotent deletes (absent ids and absent namespaces are success)
- Every call touches exactly one (index, namespace, id)
- Failures are returned as ``UpsertResult(success=False)``, never raised
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from .models import IndexEntry, UpsertResult, VectorMetadata

logger = logging.getLogger("qindex.vector_index")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class VectorIndexError(RuntimeError):
    """Internal failure talking to the index. Converted to an UpsertResult."""


# Everything an index call can fail with; collapsed into UpsertResult.
_INDEX_FAILURES = (httpx.HTTPError, VectorIndexError, ValueError, KeyError, TypeError)


# ---------------------------------------------------------------------
# Vector Index Client
# ---------------------------------------------------------------------

class VectorIndexClient:
    """
    Pinecone-backed writer for question vectors.

    The only state kept between calls is the resolved index host, which is
    fixed for the lifetime of the index.
    """

    def __init__(
        self,
        api_key: str,
        index_name: str,
        index_host: Optional[str] = None,
        control_plane_url: str = "https://api.pinecone.io",
        api_version: str = "2025-01",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize a VectorIndexClient.

        Parameters
        ----------
        api_key : str
            Pinecone API key.

        index_name : str
            Name of the shared index all course namespaces live in.

        index_host : Optional[str]
            Data-plane host of the index. Looked up from the control plane
            on first use when omitted.

        control_plane_url : str
            Base URL of the Pinecone control plane.

        api_version : str
            Value of the X-Pinecone-API-Version header.

        timeout : float
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the service.
        """
        self.api_key = api_key
        self.index_name = index_name
        self.control_plane_url = control_plane_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport
        self._host: Optional[str] = _normalize_host(index_host) if index_host else None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(
        self,
        namespace: str,
        vector_id: str,
        values: List[float],
        metadata: VectorMetadata,
    ) -> UpsertResult:
        """
        Insert or overwrite one vector in ``namespace``.
        """
        try:
            entry = IndexEntry(id=vector_id, values=values, metadata=metadata)
            async with self._client() as client:
                host = await self._resolve_host(client)
                response = await client.post(
                    f"{host}/vectors/upsert",
                    json={
                        "vectors": [entry.model_dump()],
                        "namespace": namespace,
                    },
                )
                response.raise_for_status()
        except _INDEX_FAILURES as exc:
            return self._failure("upsert", namespace, vector_id, exc)

        logger.info("Upserted vector %s into namespace %s", vector_id, namespace)
        return UpsertResult(
            success=True,
            message="Vector upserted successfully",
            vector_id=vector_id,
            namespace=namespace,
        )

    async def delete(self, namespace: str, vector_id: str) -> UpsertResult:
        """
        Delete one vector from ``namespace``. Deleting an absent vector is
        reported as success.
        """
        try:
            async with self._client() as client:
                host = await self._resolve_host(client)
                response = await client.post(
                    f"{host}/vectors/delete",
                    json={"ids": [vector_id], "namespace": namespace},
                )
                if not _is_namespace_not_found(response):
                    response.raise_for_status()
        except _INDEX_FAILURES as exc:
            return self._failure("delete", namespace, vector_id, exc)

        logger.info("Deleted vector %s from namespace %s", vector_id, namespace)
        return UpsertResult(
            success=True,
            message="Vector deleted successfully",
            vector_id=vector_id,
            namespace=namespace,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Api-Key": self.api_key,
                "X-Pinecone-API-Version": self.api_version,
            },
        )

    async def _resolve_host(self, client: httpx.AsyncClient) -> str:
        if self._host is not None:
            return self._host

        response = await client.get(
            f"{self.control_plane_url}/indexes/{self.index_name}"
        )
        response.raise_for_status()

        host = response.json().get("host")
        if not host:
            raise VectorIndexError(
                f"Index '{self.index_name}' description has no host."
            )

        self._host = _normalize_host(host)
        return self._host

    @staticmethod
    def _failure(
        operation: str,
        namespace: str,
        vector_id: str,
        exc: BaseException,
    ) -> UpsertResult:
        message = _describe_error(exc)
        logger.warning(
            "Vector %s failed (%s): namespace=%s, id=%s, error=%s",
            operation,
            type(exc).__name__,
            namespace,
            vector_id,
            message,
        )
        return UpsertResult(success=False, message=message)


def _normalize_host(host: str) -> str:
    host = host.rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return host


def _is_namespace_not_found(response: httpx.Response) -> bool:
    """
    Pinecone answers a delete in a never-written namespace with
    404 {"message": "Namespace not found"}. Any other 404 (unknown route,
    wrong host) is a real failure.
    """
    if response.status_code != 404:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, dict):
        return False
    message = body.get("message")
    if not isinstance(message, str):
        error = body.get("error")
        message = error.get("message") if isinstance(error, dict) else None
    return isinstance(message, str) and "namespace not found" in message.lower()


def _describe_error(exc: BaseException) -> str:
    """
    Produce a single human-readable message from any index failure shape.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        detail = exc.response.reason_phrase
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                detail = error["message"]
            elif body.get("message"):
                detail = body["message"]
        return f"HTTP {status}: {detail}"

    if isinstance(exc, httpx.TimeoutException):
        return f"Timed out talking to vector index ({type(exc).__name__})"

    return str(exc) or type(exc).__name__
