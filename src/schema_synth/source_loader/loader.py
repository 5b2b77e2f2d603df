"""Source loader entry point — routes raw input to the right parser."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from schema_synth.schema.model import CanonicalSchema
from schema_synth.source_loader.base import BaseParser, SourceFormat
from schema_synth.source_loader.ddl_parser import DDLParser
from schema_synth.source_loader.detector import FormatDetector, TaggedInput
from schema_synth.source_loader.document_parser import DocumentParser
from schema_synth.source_loader.interface_parser import InterfaceParser
from schema_synth.source_loader.json_schema_parser import JsonSchemaParser

logger = logging.getLogger(__name__)

PARSERS: dict[SourceFormat, type[BaseParser]] = {
    SourceFormat.JSON_SCHEMA: JsonSchemaParser,
    SourceFormat.DDL: DDLParser,
    SourceFormat.DOCUMENT: DocumentParser,
    SourceFormat.INTERFACE: InterfaceParser,
}


def get_parser(fmt: SourceFormat) -> BaseParser:
    return PARSERS[fmt]()


def parse_schema(
    raw_input: Any,
    format_hint: Optional[str] = None,
    options: Optional[dict] = None,
) -> CanonicalSchema:
    """Parse raw schema input of any supported notation.

    Args:
        raw_input: Source text, a mapping, or a TaggedInput. A mapping whose
            only members are ``kind`` and ``payload`` is read as a tagged input.
        format_hint: Optional notation name (``json``, ``sql``, ``mongoose``,
            ``typescript`` and their aliases). Overrides detection.
        options: Parser options, e.g. ``title`` or the interface ``name``.

    Raises:
        UnsupportedFormatError, DetectionFailureError, InputShapeError,
        DdlParseError, NoDefinitionFoundError.
    """
    if isinstance(raw_input, Mapping) and set(raw_input) == {"kind", "payload"}:
        raw_input = TaggedInput.from_dict(raw_input)

    fmt = FormatDetector.detect(raw_input, format_hint)
    payload = raw_input.payload if isinstance(raw_input, TaggedInput) else raw_input
    logger.debug(f"Routing schema input to the {fmt.value} parser")
    return get_parser(fmt).parse(payload, options=options or {})
