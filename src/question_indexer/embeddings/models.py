"""
Indexing Data Models

This module defines the canonical data model used by the question indexing
pipeline:

- ``QuestionRecord``: the inbound question as yielded by the question store
- ``IndexEntry``: the unit actually written to the vector index
- ``UpsertResult``: the uniform outcome of every index write or delete
- Batch reporting models for bulk reindex runs

A question maps to exactly ONE vector, keyed by the question's stable id.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


MetadataValue = Union[str, int, float, bool]
VectorMetadata = Dict[str, MetadataValue]

_TRUTHY_STRINGS = frozenset({"true", "1", "yes", "y", "on", "t"})


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class QuestionValidationError(ValueError):
    """Raised when a question record is missing or has malformed required fields."""


# ---------------------------------------------------------------------
# Question Record
# ---------------------------------------------------------------------

class QuestionRecord(BaseModel):
    """
    A single question as stored in the external question store.

    Only the fields the pipeline reads are declared; every other attribute
    is kept verbatim (``extra="allow"``) so it can flow into the vector
    metadata.
    """

    id: Union[int, str] = Field(
        ...,
        description="Stable, immutable question identifier. Used as the vector id.",
    )

    question: str = Field(
        ...,
        min_length=1,
        description="Display text of the question. Always embedded.",
    )

    course_code: str = Field(
        ...,
        min_length=1,
        description="Course the question belongs to. Selects the index namespace.",
    )

    has_description: bool = Field(
        default=False,
        description="Whether description_content should be embedded too.",
    )

    # Optional attributes are taken as-is; only id, question and course_code
    # can make a record invalid.
    description_content: Any = None
    exam_type: Any = None
    semester_term: Any = None

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
    )

    @field_validator("has_description", mode="before")
    @classmethod
    def coerce_has_description(cls, v: Any) -> bool:
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in _TRUTHY_STRINGS
        return bool(v)

    @property
    def embeddable_description(self) -> Optional[str]:
        """The description text, only when it is a non-empty string."""
        if isinstance(self.description_content, str) and self.description_content:
            return self.description_content
        return None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("id must be an integer or string, not a boolean")
        if isinstance(v, str) and not v.strip():
            raise ValueError("id must not be blank")
        return v

    @field_validator("course_code")
    @classmethod
    def validate_course_code(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("course_code must not be blank")
        return v

    @property
    def vector_id(self) -> str:
        return str(self.id)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "QuestionRecord":
        """
        Validate a raw record, converting pydantic errors into
        ``QuestionValidationError``.
        """
        if not isinstance(raw, Mapping):
            raise QuestionValidationError(
                f"Question record must be a mapping, got {type(raw).__name__}"
            )
        # the store's internal "_id" is never part of the record
        fields = {k: v for k, v in raw.items() if k != "_id"}
        try:
            return cls.model_validate(fields)
        except ValidationError as exc:
            bad = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            raise QuestionValidationError(
                f"Invalid question record (id={raw.get('id')!r}): "
                f"bad or missing field(s): {', '.join(bad)}"
            ) from exc


# ---------------------------------------------------------------------
# Index Entry & Results
# ---------------------------------------------------------------------

class IndexEntry(BaseModel):
    """
    One vector as written to the index: ``{id, values, metadata}``.
    """

    id: str = Field(..., min_length=1)
    values: List[float] = Field(..., min_length=1)
    metadata: VectorMetadata = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)


class UpsertResult(BaseModel):
    """
    Uniform outcome of an index upsert or delete.

    Index failures are reported through ``success=False`` and never raised.
    """

    success: bool
    message: str
    vector_id: Optional[str] = None
    namespace: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Batch Reporting
# ---------------------------------------------------------------------

ErrorKind = Literal["validation", "embedding", "index_write"]


class ReindexedItem(BaseModel):
    id: Union[int, str]
    vector_id: str
    course_code: str
    exam_type: Any = None
    semester_term: Any = None
    namespace: str
    vector_dimensions: int = Field(..., ge=0)


class FailedItem(BaseModel):
    id: Optional[Union[int, str]] = None
    course_code: Optional[str] = None
    error: str
    error_kind: ErrorKind
    timestamp: str


class BatchSummary(BaseModel):
    total_processed: int = 0
    successful_upserts: int = 0
    failed_upserts: int = 0
    validation_errors: int = 0
    embedding_errors: int = 0
    index_errors: int = 0


class BatchReindexReport(BaseModel):
    """
    Aggregated outcome of a bulk reindex run.
    """

    total: int = Field(default=0, ge=0)
    updated: List[ReindexedItem] = Field(default_factory=list)
    failed: List[FailedItem] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)
    namespace_collisions: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed
