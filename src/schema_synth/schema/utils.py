"""Helpers for combining, slicing and re-exporting canonical schemas."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind


def merge_schemas(*schemas: Optional[CanonicalSchema]) -> CanonicalSchema:
    """Merge schemas left to right; later fields and definitions win.

    The title of the first schema is kept.
    """
    valid = [s for s in schemas if isinstance(s, CanonicalSchema)]
    if not valid:
        return CanonicalSchema(title="Empty Schema")

    merged = valid[0].copy()
    for schema in valid[1:]:
        other = schema.copy()
        merged.fields.update(other.fields)
        if other.definitions:
            merged.definitions = {**(merged.definitions or {}), **other.definitions}
    return merged


def extract_fields(schema: CanonicalSchema, field_names: Iterable[str]) -> CanonicalSchema:
    """Return a schema containing only the named fields that exist."""
    subset = CanonicalSchema(title=schema.title, type=schema.type)
    for name in field_names:
        if name in schema.fields:
            subset.fields[name] = schema.fields[name]
    return subset.copy()


def _field_to_property(fd: FieldDefinition) -> dict[str, Any]:
    kind = fd.kind.value if isinstance(fd.kind, FieldKind) else str(fd.kind)
    prop: dict[str, Any] = {"type": "string" if fd.kind == FieldKind.ENUM else kind}

    if fd.format:
        prop["format"] = fd.format

    if fd.kind == FieldKind.STRING:
        if fd.min is not None:
            prop["minLength"] = fd.min
        if fd.max is not None:
            prop["maxLength"] = fd.max
    elif fd.kind in (FieldKind.NUMBER, FieldKind.INTEGER):
        if fd.min is not None:
            prop["minimum"] = fd.min
        if fd.max is not None:
            prop["maximum"] = fd.max

    if fd.kind == FieldKind.ARRAY:
        if fd.min_items is not None:
            prop["minItems"] = fd.min_items
        if fd.max_items is not None:
            prop["maxItems"] = fd.max_items
        if fd.items is not None:
            prop["items"] = _field_to_property(fd.items)

    if fd.pattern:
        prop["pattern"] = fd.pattern
    if fd.values:
        prop["enum"] = list(fd.values)
    if fd.default is not None:
        prop["default"] = fd.default

    if fd.properties is not None:
        nested = _fields_to_object(fd.properties)
        prop["properties"] = nested["properties"]
        if "required" in nested:
            prop["required"] = nested["required"]

    return prop


def _fields_to_object(fields: dict[str, FieldDefinition]) -> dict[str, Any]:
    out: dict[str, Any] = {"type": "object", "properties": {}}
    required = []
    for name, fd in fields.items():
        out["properties"][name] = _field_to_property(fd)
        if fd.required:
            required.append(name)
    if required:
        out["required"] = required
    return out


def to_json_schema(schema: Optional[CanonicalSchema]) -> dict[str, Any]:
    """Convert a canonical schema back into a JSON Schema document."""
    if schema is None:
        return {"type": "object", "properties": {}}

    doc = {"title": schema.title, **_fields_to_object(schema.fields)}
    if schema.definitions:
        doc["definitions"] = {
            name: _fields_to_object(fields) for name, fields in schema.definitions.items()
        }
    return doc
