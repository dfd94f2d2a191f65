import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from question_indexer.main import app
from question_indexer.api.dependencies import get_embedder, get_vector_index
from question_indexer.embeddings.embedder import Embedder, EmbeddingError
from question_indexer.embeddings.models import UpsertResult
from question_indexer.embeddings.vector_index import VectorIndexClient


QUESTION = {
    "_id": "65a1f0c2e4b0a1b2c3d4e5f6",
    "id": 101,
    "question": "Explain BFS.",
    "course_code": "CSE 2215",
    "exam_type": "Mid",
    "semester_term": "Fall 2024",
    "has_description": True,
    "description_content": "Use an adjacency list.",
    "created_at": "2024-09-01T10:00:00Z",
}


@pytest.fixture
def mock_vectors():
    mock = AsyncMock(spec=VectorIndexClient)
    mock.upsert.return_value = UpsertResult(
        success=True,
        message="Vector upserted successfully",
        vector_id="101",
        namespace="course-cse-2215",
    )
    mock.delete.return_value = UpsertResult(
        success=True,
        message="Vector deleted successfully",
        vector_id="101",
        namespace="course-cse-2215",
    )
    return mock


@pytest.fixture
def mock_embedder():
    mock = AsyncMock(spec=Embedder)
    mock.embed.return_value = [0.1] * 1536
    return mock


@pytest.fixture
def client(mock_vectors, mock_embedder):
    app.dependency_overrides[get_vector_index] = lambda: mock_vectors
    app.dependency_overrides[get_embedder] = lambda: mock_embedder

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides = {}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_reindex_question(client, mock_vectors, mock_embedder):
    resp = client.post("/questions/index", json=QUESTION)

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["vector_id"] == "101"
    assert data["namespace"] == "course-cse-2215"

    mock_embedder.embed.assert_awaited_once_with(
        "Explain BFS.", True, "Use an adjacency list."
    )
    namespace, vector_id, _, metadata = mock_vectors.upsert.await_args.args
    assert namespace == "course-cse-2215"
    assert vector_id == "101"
    assert "_id" not in metadata
    assert metadata["exam_type_text"] == "Mid"


def test_reindex_index_failure_reported_in_body(client, mock_vectors):
    mock_vectors.upsert.return_value = UpsertResult(success=False, message="HTTP 500: boom")

    resp = client.post("/questions/index", json=QUESTION)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": False,
        "message": "HTTP 500: boom",
        "vector_id": None,
        "namespace": None,
    }


def test_reindex_invalid_question(client, mock_embedder, mock_vectors):
    resp = client.post("/questions/index", json={"question": "no id or course"})

    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_question"
    mock_embedder.embed.assert_not_called()
    mock_vectors.upsert.assert_not_called()


def test_reindex_embedding_failure(client, mock_embedder, mock_vectors):
    mock_embedder.embed.side_effect = EmbeddingError("Embedding generation failed: ReadTimeout")

    resp = client.post("/questions/index", json=QUESTION)

    assert resp.status_code == 502
    assert resp.json()["error"] == "embedding_failed"
    mock_vectors.upsert.assert_not_called()


def test_reindex_batch(client, mock_embedder):
    async def embed(question, has_description, description):
        if question == "broken":
            raise EmbeddingError("Embedding generation failed: HTTPStatusError")
        return [0.2] * 1536

    mock_embedder.embed.side_effect = embed
    payload = {
        "questions": [
            QUESTION,
            {**QUESTION, "id": 102, "question": "broken"},
            {**QUESTION, "id": 103},
        ]
    }

    resp = client.post("/questions/index/batch", json=payload)

    assert resp.status_code == 200
    data = resp.json()
    assert data["summary"]["total_processed"] == 3
    assert data["summary"]["successful_upserts"] == 2
    assert data["summary"]["embedding_errors"] == 1
    assert [item["id"] for item in data["failed"]] == [102]


def test_reindex_batch_reports_non_object_items(client):
    payload = {"questions": [QUESTION, "not-an-object", 7, {**QUESTION, "id": 103}]}

    resp = client.post("/questions/index/batch", json=payload)

    assert resp.status_code == 200
    data = resp.json()
    assert data["summary"]["total_processed"] == 4
    assert data["summary"]["validation_errors"] == 2
    assert data["summary"]["successful_upserts"] == 2
    assert all(item["error_kind"] == "validation" for item in data["failed"])


def test_reindex_question_with_loose_optional_fields(client, mock_embedder):
    payload = {
        **QUESTION,
        "has_description": None,
        "semester_term": 2024.5,
        "exam_type": {"kind": "mid"},
    }

    resp = client.post("/questions/index", json=payload)

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    mock_embedder.embed.assert_awaited_once_with("Explain BFS.", False, "Use an adjacency list.")


def test_delete_question(client, mock_vectors, mock_embedder):
    resp = client.delete("/questions/101", params={"course_code": "CSE 2215"})

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    mock_vectors.delete.assert_awaited_once_with("course-cse-2215", "101")
    mock_embedder.embed.assert_not_called()


def test_delete_requires_course_code(client, mock_vectors):
    resp = client.delete("/questions/101")

    assert resp.status_code == 422
    mock_vectors.delete.assert_not_called()
