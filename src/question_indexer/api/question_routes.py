"""
Question Indexing Routes

This module exposes endpoints for:
- Reindexing a single question (embed + upsert)
- Reindexing many questions in one batch
- Removing a question's vector

They are invoked by the question backend whenever a question is created,
edited or deleted, so the course namespaces stay in sync with the store.
Index write failures are reported in the response body (``success: false``);
validation and embedding failures are mapped to HTTP errors by the global
handlers.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from .dependencies import get_indexer
from .models import BatchReindexRequest
from ..embeddings.indexer import QuestionIndexer
from ..embeddings.models import BatchReindexReport, UpsertResult

router = APIRouter(prefix="/questions", tags=["questions"])


@router.post(
    "/index",
    summary="Create or update a question embedding",
    response_model=UpsertResult,
)
async def reindex_question(
    question: Annotated[Dict[str, Any], Body()],
    indexer: Annotated[QuestionIndexer, Depends(get_indexer)],
) -> UpsertResult:
    """
    Embed a question and upsert it into its course namespace.

    Workflow
    --------
    1. Validate required fields (id, question, course_code).
    2. Sanitize the record into index metadata.
    3. Embed question text (+ description).
    4. Upsert under the question id in the course namespace.
    """
    return await indexer.reindex_question(question)


@router.post(
    "/index/batch",
    summary="Reindex many questions",
    response_model=BatchReindexReport,
)
async def reindex_questions(
    req: BatchReindexRequest,
    indexer: Annotated[QuestionIndexer, Depends(get_indexer)],
) -> BatchReindexReport:
    """
    Reindex every question in the payload, optionally restricted to one
    course. Each question succeeds or fails independently.
    """
    return await indexer.reindex_many(req.questions, course_code=req.course_code)


@router.delete(
    "/{question_id}",
    summary="Delete a question embedding",
    response_model=UpsertResult,
)
async def remove_question(
    question_id: str,
    course_code: Annotated[str, Query(min_length=1)],
    indexer: Annotated[QuestionIndexer, Depends(get_indexer)],
) -> UpsertResult:
    """
    Delete a question's vector. Deleting an unknown question succeeds.
    """
    return await indexer.remove_question(question_id, course_code)
