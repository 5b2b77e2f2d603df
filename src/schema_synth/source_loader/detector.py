"""Auto-detection of the source notation of raw schema input.

Callers should prefer an explicit hint or a TaggedInput; content heuristics
are a best-effort fallback.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from schema_synth.errors import DetectionFailureError, InputShapeError, UnsupportedFormatError
from schema_synth.source_loader.base import SourceFormat

HINT_ALIASES = {
    "json": SourceFormat.JSON_SCHEMA,
    "jsonschema": SourceFormat.JSON_SCHEMA,
    "json-schema": SourceFormat.JSON_SCHEMA,
    "json_schema": SourceFormat.JSON_SCHEMA,
    "sql": SourceFormat.DDL,
    "ddl": SourceFormat.DDL,
    "mongoose": SourceFormat.DOCUMENT,
    "document": SourceFormat.DOCUMENT,
    "typescript": SourceFormat.INTERFACE,
    "ts": SourceFormat.INTERFACE,
    "interface": SourceFormat.INTERFACE,
}

_CREATE_TABLE = re.compile(r"\bcreate\s+table\b", re.IGNORECASE)
_INTERFACE_TOKEN = re.compile(r"\b(interface|class)\b")


@dataclass
class TaggedInput:
    """Raw input explicitly tagged with its notation."""

    kind: str
    payload: Any

    @classmethod
    def from_dict(cls, data: Mapping) -> TaggedInput:
        if "kind" not in data or "payload" not in data:
            raise InputShapeError("Tagged input requires 'kind' and 'payload' members")
        return cls(kind=str(data["kind"]), payload=data["payload"])


class FormatDetector:
    """Chooses which parser handles a raw input."""

    @classmethod
    def detect(cls, content: Any, hint: Optional[str] = None) -> SourceFormat:
        """Detect the source notation of ``content``.

        Priority:
        1. Explicit hint (or the tag of a TaggedInput)
        2. Content-based heuristics
        """
        if hint is None and isinstance(content, TaggedInput):
            hint = content.kind
        if hint is not None:
            return cls.resolve_hint(hint)

        if isinstance(content, TaggedInput):
            content = content.payload
        if isinstance(content, str):
            return cls._detect_from_text(content)
        if isinstance(content, Mapping):
            return cls._detect_from_mapping(content)

        raise InputShapeError(
            f"Cannot detect schema format of {type(content).__name__} input; "
            "expected a string or a mapping"
        )

    @classmethod
    def resolve_hint(cls, hint: Any) -> SourceFormat:
        if isinstance(hint, SourceFormat):
            return hint
        fmt = HINT_ALIASES.get(str(hint).strip().lower())
        if fmt is None:
            raise UnsupportedFormatError(str(hint))
        return fmt

    @classmethod
    def _detect_from_text(cls, content: str) -> SourceFormat:
        stripped = content.strip()
        if not stripped:
            raise DetectionFailureError("Cannot detect schema format of empty input")

        # A full structured-document parse wins over text heuristics
        try:
            json.loads(stripped)
            return SourceFormat.JSON_SCHEMA
        except json.JSONDecodeError:
            pass

        if _CREATE_TABLE.search(stripped):
            return SourceFormat.DDL

        if _INTERFACE_TOKEN.search(stripped):
            return SourceFormat.INTERFACE

        raise DetectionFailureError(
            "Could not detect schema format. Please specify a format hint."
        )

    @classmethod
    def _detect_from_mapping(cls, content: Mapping) -> SourceFormat:
        if isinstance(content.get("paths"), Mapping):
            return SourceFormat.DOCUMENT
        nested = content.get("schema")
        if isinstance(nested, Mapping) and isinstance(nested.get("paths"), Mapping):
            return SourceFormat.DOCUMENT
        return SourceFormat.JSON_SCHEMA
