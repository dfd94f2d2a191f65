"""
API Models for the Indexing Service

Request/response models for the question indexing endpoints. Result payloads
reuse the pipeline models (``UpsertResult``, ``BatchReindexReport``) so the
HTTP contract and the in-process contract cannot drift.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict


class BatchReindexRequest(BaseModel):
    """
    Bulk reindex payload. Questions are validated one by one inside the
    batch so a malformed record is reported instead of rejecting the call.
    """
    questions: List[Any] = Field(default_factory=list)
    course_code: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Only reindex questions of this course.",
    )

    model_config = ConfigDict(extra="forbid")


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    index: str

    model_config = ConfigDict(extra="forbid")
