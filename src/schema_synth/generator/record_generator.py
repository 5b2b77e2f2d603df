"""Record generator — builds synthetic records from a schema.

Three schema shapes are accepted, checked in this order:
1. a CanonicalSchema, or a mapping with ``fields`` whose values are
   FieldDefinitions, wire dicts or bare kind names
2. a JSON-Schema-shaped mapping with ``properties``
3. a sequence of field names, each generated as an unconstrained string
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from schema_synth.config.settings import get_config
from schema_synth.errors import InputShapeError
from schema_synth.generator.field_sampler import FieldSampler, default_sampler
from schema_synth.schema.model import CanonicalSchema, FieldDefinition
from schema_synth.source_loader.json_schema_parser import parse_properties

logger = logging.getLogger(__name__)


def resolve_fields(schema: Any) -> dict[str, FieldDefinition]:
    """Return the ordered field map for any accepted schema shape."""
    if isinstance(schema, CanonicalSchema):
        return schema.fields
    if isinstance(schema, Mapping):
        if schema.get("fields") is not None:
            return {name: FieldDefinition.from_dict(name, fd) for name, fd in schema["fields"].items()}
        if schema.get("properties") is not None:
            return parse_properties(schema["properties"])
        raise InputShapeError("Schema mapping has neither 'fields' nor 'properties'")
    if isinstance(schema, Sequence) and not isinstance(schema, (str, bytes)):
        return {str(name): FieldDefinition(name=str(name)) for name in schema}
    raise InputShapeError(f"Unsupported schema shape: {type(schema).__name__}")


def generate_record(schema: Any, sampler: Optional[FieldSampler] = None) -> dict[str, Any]:
    """Generate one record with a value for every field of ``schema``."""
    sampler = sampler or default_sampler()
    return {name: sampler.generate_field(fd) for name, fd in resolve_fields(schema).items()}


def generate_records(
    schema: Any,
    count: Optional[int] = None,
    seed: Optional[int] = None,
    sampler: Optional[FieldSampler] = None,
) -> list[dict[str, Any]]:
    """Generate ``count`` independent records.

    Args:
        schema: Any accepted schema shape.
        count: Number of records; defaults to the configured record count.
        seed: Builds a freshly seeded sampler, so identical (schema, seed,
            count) always yields identical records. Takes precedence over
            ``sampler``.
        sampler: Random source to draw from when no seed is given.
    """
    if count is None:
        count = get_config().default_record_count
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    if seed is not None:
        sampler = FieldSampler(seed=seed)
    sampler = sampler or default_sampler()

    fields = resolve_fields(schema)
    records = [
        {name: sampler.generate_field(fd) for name, fd in fields.items()}
        for _ in range(count)
    ]
    logger.info(f"Generated {len(records)} records with {len(fields)} fields")
    return records
