"""Schema enhancer — infers missing formats and length bounds from field names.

Only top-level fields are considered; nested ``properties`` and ``items``
are left exactly as parsed. Explicit author-set format, min and max are
never overwritten.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind

logger = logging.getLogger(__name__)

# Ordered: the first matching rule wins
FORMAT_RULES: list[tuple[str, re.Pattern, Optional[re.Pattern]]] = [
    ("email", re.compile(r"email"), None),
    ("phone", re.compile(r"phone|mobile|tel"), None),
    ("url", re.compile(r"url|website|link"), None),
    ("uuid", re.compile(r"uuid|guid"), None),
    ("date", re.compile(r"date"), re.compile(r"datetime|time")),
    ("datetime", re.compile(r"datetime"), None),
    ("password", re.compile(r"password"), None),
]

# (min, max) length defaults keyed by resolved format
FORMAT_BOUNDS = {
    "email": (5, 255),
    "url": (10, 2083),
    "phone": (7, 20),
}

# (min, max) length defaults keyed by name substring, checked after formats
NAME_BOUNDS = [
    ("name", (2, 100)),
    ("description", (10, 1000)),
]


def infer_format(name: str) -> Optional[str]:
    """Return the format suggested by a field name, or None."""
    lowered = name.lower()
    for fmt, include, exclude in FORMAT_RULES:
        if include.search(lowered) and not (exclude and exclude.search(lowered)):
            return fmt
    return None


def default_bounds(name: str, fmt: Optional[str]) -> Optional[tuple[int, int]]:
    """Return default (min, max) string length for a field, or None."""
    if fmt in FORMAT_BOUNDS:
        return FORMAT_BOUNDS[fmt]
    lowered = name.lower()
    for needle, bounds in NAME_BOUNDS:
        if needle in lowered:
            return bounds
    return None


def _enhance_field(name: str, fd: FieldDefinition) -> None:
    if fd.kind != FieldKind.STRING:
        return

    if not fd.format:
        fmt = infer_format(name)
        if fmt:
            fd.format = fmt
            logger.debug(f"Inferred format {fmt!r} for field {name}")

    if fd.min is None and fd.max is None:
        bounds = default_bounds(name, fd.format)
        if bounds:
            fd.min, fd.max = bounds


def enhance_schema(schema: CanonicalSchema) -> CanonicalSchema:
    """Return a copy of ``schema`` with name-inferred formats and bounds added."""
    enhanced = schema.copy()
    for name, fd in enhanced.fields.items():
        _enhance_field(name, fd)
    return enhanced
