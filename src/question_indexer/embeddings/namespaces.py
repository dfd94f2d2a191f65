"""
Per-Course Namespace Resolution

Every course gets its own namespace inside the single shared vector index.
Namespaces are derived, never stored:

    namespace = "course-<course_short>", lowercased, with every character
    outside [a-z0-9-] replaced by "-"

The whole composed string is sanitized as one unit. Resolution is total: any
input string, including the empty string, yields a valid namespace.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, Iterable, List


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

NAMESPACE_PREFIX = "course-"
_DISALLOWED_CHARS = re.compile(r"[^a-z0-9-]")
NAMESPACE_PATTERN = re.compile(r"^course-[a-z0-9-]*$")


# ---------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------

def resolve_namespace(course_short: str) -> str:
    """
    Derive the index namespace for a course.

    Examples
    --------
    >>> resolve_namespace("CSE-1111!")
    'course-cse-1111-'
    >>> resolve_namespace("")
    'course-'
    """
    composed = f"{NAMESPACE_PREFIX}{course_short}".lower()
    return _DISALLOWED_CHARS.sub("-", composed)


def find_namespace_collisions(course_codes: Iterable[str]) -> Dict[str, List[str]]:
    """
    Report namespaces shared by more than one distinct course code.

    Distinct codes such as "CSE 1111" and "cse-1111" resolve to the same
    namespace and therefore share vectors.

    Returns
    -------
    Dict[str, List[str]]
        namespace -> sorted distinct course codes, only for shared namespaces.
    """
    by_namespace: Dict[str, set] = defaultdict(set)
    for code in course_codes:
        by_namespace[resolve_namespace(code)].add(code)

    return {
        namespace: sorted(codes)
        for namespace, codes in sorted(by_namespace.items())
        if len(codes) > 1
    }
