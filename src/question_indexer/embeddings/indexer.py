"""
Question Indexer

Composes the indexing pipeline for questions:

    reindex:  validate -> sanitize metadata -> embed -> resolve namespace -> upsert
    remove:   validate -> resolve namespace -> delete

The indexer is stateless between invocations. Validation and embedding
failures raise (nothing is written); index write failures come back as
``UpsertResult(success=False)``. Batch runs isolate every question so one
failure never aborts the rest.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .embedder import Embedder, EmbeddingError
from .metadata import sanitize_metadata
from .models import (
    BatchReindexReport,
    FailedItem,
    QuestionRecord,
    QuestionValidationError,
    ReindexedItem,
    UpsertResult,
)
from .namespaces import find_namespace_collisions, resolve_namespace
from .vector_index import VectorIndexClient

logger = logging.getLogger("qindex.indexer")

QuestionInput = Union[QuestionRecord, Mapping[str, Any]]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_question(question: QuestionInput) -> Tuple[QuestionRecord, Dict[str, Any]]:
    """
    Return the validated record and the raw attributes to build metadata from.
    """
    if isinstance(question, QuestionRecord):
        raw = {
            name: getattr(question, name)
            for name in question.model_fields_set
            if name in QuestionRecord.model_fields
        }
        raw.update(question.model_extra or {})
        return question, raw

    record = QuestionRecord.from_raw(question)
    return record, dict(question)


class QuestionIndexer:
    """
    Orchestrates embedding and index writes for questions.
    """

    def __init__(
        self,
        embedder: Embedder,
        vector_index: VectorIndexClient,
        concurrency: int = 4,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._embedder = embedder
        self._vector_index = vector_index
        self._concurrency = concurrency

    # ------------------------------------------------------------------
    # Single-question operations
    # ------------------------------------------------------------------

    async def reindex_question(self, question: QuestionInput) -> UpsertResult:
        """
        Embed a question and upsert it under its stable id.

        Raises
        ------
        QuestionValidationError
            If required fields are missing; raised before any external call.
        EmbeddingError
            If the embedding call fails; no index write is attempted.
        """
        _, result, _ = await self._reindex(question)
        return result

    async def remove_question(
        self,
        question_id: Union[int, str],
        course_code: str,
    ) -> UpsertResult:
        """
        Delete a question's vector from its course namespace.
        """
        if question_id is None or isinstance(question_id, bool) or not str(question_id).strip():
            raise QuestionValidationError("question id is required")
        if not isinstance(course_code, str) or not course_code.strip():
            raise QuestionValidationError("course_code is required")

        namespace = resolve_namespace(course_code)
        return await self._vector_index.delete(namespace, str(question_id))

    # ------------------------------------------------------------------
    # Batch operations
    # ------------------------------------------------------------------

    async def reindex_many(
        self,
        questions: Iterable[QuestionInput],
        course_code: Optional[str] = None,
    ) -> BatchReindexReport:
        """
        Reindex many questions with bounded concurrency.

        Parameters
        ----------
        questions : Iterable[QuestionInput]
            Question records or raw mappings.
        course_code : Optional[str]
            When given, only questions of this course are processed.

        Returns
        -------
        BatchReindexReport
            Per-question outcomes in input order plus summary counters.
        """
        items = list(questions)
        if course_code is not None:
            items = [q for q in items if _course_code_of(q) == course_code]

        report = BatchReindexReport(total=len(items))
        report.summary.total_processed = len(items)

        codes = [c for c in (_course_code_of(q) for q in items) if isinstance(c, str)]
        report.namespace_collisions = find_namespace_collisions(codes)
        for namespace, shared in report.namespace_collisions.items():
            logger.warning(
                "Course codes %s share namespace %s", ", ".join(shared), namespace
            )

        logger.info("Starting batch reindex of %d questions", len(items))

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _run(question: QuestionInput):
            async with semaphore:
                return await self._reindex_isolated(question)

        outcomes = await asyncio.gather(*(_run(q) for q in items))

        for outcome in outcomes:
            if isinstance(outcome, ReindexedItem):
                report.updated.append(outcome)
                report.summary.successful_upserts += 1
                continue

            report.failed.append(outcome)
            report.summary.failed_upserts += 1
            if outcome.error_kind == "validation":
                report.summary.validation_errors += 1
            elif outcome.error_kind == "embedding":
                report.summary.embedding_errors += 1
            else:
                report.summary.index_errors += 1

        logger.info(
            "Batch reindex finished: %d processed, %d upserted, %d failed",
            report.summary.total_processed,
            report.summary.successful_upserts,
            report.summary.failed_upserts,
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _reindex(
        self,
        question: QuestionInput,
    ) -> Tuple[QuestionRecord, UpsertResult, int]:
        record, raw = _coerce_question(question)

        metadata = sanitize_metadata({**raw, "updated_at": _utc_now_iso()})

        vector = await self._embedder.embed(
            record.question,
            record.has_description,
            record.embeddable_description,
        )

        namespace = resolve_namespace(record.course_code)
        result = await self._vector_index.upsert(
            namespace,
            record.vector_id,
            vector,
            metadata,
        )
        return record, result, len(vector)

    async def _reindex_isolated(
        self,
        question: QuestionInput,
    ) -> Union[ReindexedItem, FailedItem]:
        qid = _field_of(question, "id")
        course = _course_code_of(question)

        def failed(error: str, kind: str) -> FailedItem:
            return FailedItem(
                id=qid if isinstance(qid, (int, str)) and not isinstance(qid, bool) else None,
                course_code=course if isinstance(course, str) else None,
                error=error,
                error_kind=kind,
                timestamp=_utc_now_iso(),
            )

        try:
            record, result, dimensions = await self._reindex(question)
        except QuestionValidationError as exc:
            logger.warning("Skipping invalid question: %s", exc)
            return failed(str(exc), "validation")
        except EmbeddingError as exc:
            logger.error("Embedding failed for question %s: %s", qid, exc)
            return failed(str(exc), "embedding")

        if not result.success:
            return failed(f"Failed to upsert vector: {result.message}", "index_write")

        return ReindexedItem(
            id=record.id,
            vector_id=record.vector_id,
            course_code=record.course_code,
            exam_type=record.exam_type,
            semester_term=record.semester_term,
            namespace=result.namespace or resolve_namespace(record.course_code),
            vector_dimensions=dimensions,
        )


def _field_of(question: QuestionInput, name: str) -> Any:
    if isinstance(question, QuestionRecord):
        return getattr(question, name, None)
    if isinstance(question, Mapping):
        return question.get(name)
    return None


def _course_code_of(question: QuestionInput) -> Any:
    return _field_of(question, "course_code")
