"""Canonical schema model, enhancer and schema helpers."""

from schema_synth.schema.enhancer import enhance_schema, infer_format
from schema_synth.schema.model import (
    DOMAIN_SHAPES,
    CanonicalSchema,
    FieldDefinition,
    FieldKind,
    check_invariants,
    validate_field,
    validate_schema,
)
from schema_synth.schema.utils import extract_fields, merge_schemas, to_json_schema
