"""Base types and abstract parser for the source loader.

All parsers convert their input notation into the shared CanonicalSchema
representation (see schema_synth.schema.model).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from schema_synth.schema.model import CanonicalSchema


class SourceFormat(str, Enum):
    """Source notations the loader can route to."""

    JSON_SCHEMA = "json_schema"
    DDL = "ddl"
    DOCUMENT = "document"
    INTERFACE = "interface"


class BaseParser(ABC):
    """Abstract base class for source notation parsers."""

    format: SourceFormat

    @abstractmethod
    def parse(self, content: Any, **kwargs) -> CanonicalSchema:
        """Parse raw input into a CanonicalSchema."""
        ...
