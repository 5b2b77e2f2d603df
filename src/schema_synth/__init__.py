"""schema_synth — normalize schemas from several notations and generate synthetic records."""

from schema_synth.errors import (
    DdlParseError,
    DetectionFailureError,
    InputShapeError,
    NoDefinitionFoundError,
    SchemaSynthError,
    StructuralViolation,
    UnsupportedFormatError,
)
from schema_synth.generator import (
    FieldSampler,
    Relation,
    generate_record,
    generate_records,
    generate_related_records,
    generate_value,
)
from schema_synth.schema import CanonicalSchema, FieldDefinition, FieldKind, enhance_schema
from schema_synth.source_loader import TaggedInput, parse_schema

__version__ = "0.1.0"
