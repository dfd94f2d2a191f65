"""
Vector Metadata Sanitizer

Flattens an arbitrary question record into the metadata shape accepted by the
vector index: a flat mapping whose values are strings, numbers or booleans.

Rules
-----
- ``None`` values are omitted entirely
- The raw database identifier (``_id``) is never stored
- Dates become ISO-8601 strings, composites become compact JSON text
- ``<field>_text`` string companions are added for the filter key fields
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from typing import Any, Mapping

from .models import MetadataValue, VectorMetadata


INTERNAL_ID_KEY = "_id"

# Fields that always get a string-typed companion for filter queries
TEXT_FILTER_FIELDS = ("id", "course_code", "exam_type", "semester_term")


def _iso_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_value(value: Any) -> MetadataValue:
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return _iso_datetime(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (str, bool, int)):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)

    if isinstance(value, (dict, list, tuple, set, frozenset)):
        if isinstance(value, (set, frozenset)):
            value = sorted(value, key=str)
        try:
            return json.dumps(value, default=str, separators=(",", ":"))
        except (TypeError, ValueError):
            # non-string keys or circular references
            return str(value)

    return str(value)


def sanitize_metadata(record: Mapping[str, Any]) -> VectorMetadata:
    """
    Convert a question record into index-safe metadata.

    Never raises; an empty record yields an empty mapping.
    """
    metadata: VectorMetadata = {}

    for key, value in record.items():
        if value is None or key == INTERNAL_ID_KEY:
            continue
        metadata[str(key)] = _coerce_value(value)

    for field in TEXT_FILTER_FIELDS:
        if field in metadata:
            metadata[f"{field}_text"] = str(metadata[field])

    return metadata
