"""Error hierarchy for schema parsing and record generation.

Every failure raised by the package derives from SchemaSynthError so callers
can catch the whole family at their request boundary. Parsers wrap internal
failures in their format-specific error and keep the original exception on
``cause`` (and as ``__cause__`` via ``raise ... from``).
"""

from __future__ import annotations

from typing import Optional


class SchemaSynthError(Exception):
    """Base exception for all schema_synth errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InputShapeError(SchemaSynthError):
    """Raw input is malformed or not the shape a parser expects."""


class UnsupportedFormatError(SchemaSynthError):
    """A format hint names something outside the supported set."""

    def __init__(self, hint: str):
        super().__init__(f"Unsupported schema format: {hint}")
        self.hint = hint


class DetectionFailureError(SchemaSynthError):
    """No hint was given and no detection heuristic matched."""


class DdlParseError(SchemaSynthError):
    """A CREATE TABLE statement could not be extracted or parsed."""


class NoDefinitionFoundError(SchemaSynthError):
    """Interface source contains no interface or class block."""


class StructuralViolation(SchemaSynthError):
    """A canonical schema breaks one of the field model invariants."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
