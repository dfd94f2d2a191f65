import asyncio
import json

import httpx
import pytest

from question_indexer.embeddings.embedder import (
    Embedder,
    EmbeddingDimensionError,
    EmbeddingError,
    build_embedding_text,
)


def make_embedder(handler, dimensions=None):
    return Embedder(
        api_key="sk-test",
        model="text-embedding-3-small",
        base_url="https://embeddings.test/v1/embeddings",
        dimensions=dimensions,
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def ok_handler(vector, captured=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(200, json={"data": [{"embedding": vector, "index": 0}]})
    return handler


# ---------------------------------------------------------------------
# Input text
# ---------------------------------------------------------------------

def test_text_with_description():
    assert build_embedding_text("What is X?", True, "See chapter 2") == "What is X? | See chapter 2"


def test_text_without_description():
    assert build_embedding_text("What is X?", False, None) == "What is X?"


def test_description_ignored_when_not_flagged():
    assert build_embedding_text("What is X?", False, "See chapter 2") == "What is X?"


def test_empty_description_ignored():
    assert build_embedding_text("What is X?", True, "") == "What is X?"


# ---------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_embed_sends_single_request():
    captured = []
    embedder = make_embedder(ok_handler([0.1, 0.2, 0.3], captured))

    vector = await embedder.embed("What is X?", True, "See chapter 2")

    assert vector == [0.1, 0.2, 0.3]
    assert len(captured) == 1
    request = captured[0]
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert json.loads(request.content) == {
        "model": "text-embedding-3-small",
        "input": "What is X? | See chapter 2",
        "encoding_format": "float",
    }


@pytest.mark.asyncio
async def test_embed_returns_vector_unmodified():
    raw = [3, -4.5, 0.0001]
    embedder = make_embedder(ok_handler(raw))

    assert await embedder.embed("q") == [3.0, -4.5, 0.0001]


@pytest.mark.asyncio
async def test_only_first_result_used():
    def handler(request):
        return httpx.Response(200, json={"data": [{"embedding": [1.0]}, {"embedding": [2.0]}]})

    assert await make_embedder(handler).embed("q") == [1.0]


# ---------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_http_error_raises_embedding_error():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    with pytest.raises(EmbeddingError) as excinfo:
        await make_embedder(handler).embed("q")
    assert "HTTPStatusError" in str(excinfo.value)


@pytest.mark.asyncio
async def test_timeout_raises_embedding_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(EmbeddingError):
        await make_embedder(handler).embed("q")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"data": []},
        {"data": [{"index": 0}]},
        {"data": [{"embedding": "nope"}]},
        {"data": [{"embedding": []}]},
        {"data": [{"embedding": [0.1, "x"]}]},
    ],
)
async def test_malformed_response_raises(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(EmbeddingError):
        await make_embedder(handler).embed("q")


@pytest.mark.asyncio
async def test_non_json_response_raises():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(EmbeddingError):
        await make_embedder(handler).embed("q")


@pytest.mark.asyncio
async def test_dimension_mismatch_is_fatal():
    embedder = make_embedder(ok_handler([0.1, 0.2]), dimensions=1536)

    with pytest.raises(EmbeddingDimensionError):
        await embedder.embed("q")


@pytest.mark.asyncio
async def test_matching_dimension_accepted():
    embedder = make_embedder(ok_handler([0.5] * 4), dimensions=4)

    assert len(await embedder.embed("q")) == 4


@pytest.mark.asyncio
async def test_cancelled_embed_propagates():
    started = asyncio.Event()

    async def handler(request):
        started.set()
        await asyncio.Event().wait()

    task = asyncio.create_task(make_embedder(handler).embed("q"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
