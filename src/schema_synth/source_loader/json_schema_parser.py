"""JSON Schema parser — handles JSON Schema documents given as JSON, YAML or a mapping.

Accepts:
1. Draft-07 style documents: { "title", "properties", "required", "definitions" }
2. OpenAPI style documents with reusable schemas under components.schemas
3. The same structures written in YAML

Definitions are converted one level deep; ``$ref`` members are kept as
reference fields rather than resolved.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import yaml

from schema_synth.errors import InputShapeError
from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind
from schema_synth.source_loader.base import BaseParser, SourceFormat

logger = logging.getLogger(__name__)

TYPE_MAPPING = {
    "string": FieldKind.STRING,
    "number": FieldKind.NUMBER,
    "integer": FieldKind.INTEGER,
    "boolean": FieldKind.BOOLEAN,
    "object": FieldKind.OBJECT,
    "array": FieldKind.ARRAY,
    "null": FieldKind.STRING,
}

FORMAT_MAPPING = {
    "email": "email",
    "idn-email": "email",
    "uri": "url",
    "url": "url",
    "iri": "url",
    "uuid": "uuid",
    "date": "date",
    "date-time": "datetime",
    "phone": "phone",
    "password": "password",
}


def _resolve_type(prop: Mapping) -> FieldKind:
    raw = prop.get("type")
    if isinstance(raw, list):
        # ["string", "null"] style nullable unions
        non_null = [t for t in raw if t != "null"]
        raw = non_null[0] if non_null else "null"
    if raw is None:
        if "properties" in prop:
            return FieldKind.OBJECT
        if "items" in prop:
            return FieldKind.ARRAY
        return FieldKind.STRING
    return TYPE_MAPPING.get(str(raw), FieldKind.STRING)


def parse_property(name: str, prop: Any) -> FieldDefinition:
    """Convert one JSON Schema property into a FieldDefinition."""
    if not isinstance(prop, Mapping):
        raise InputShapeError(f"Property {name!r} must be an object, got {type(prop).__name__}")

    if "$ref" in prop:
        ref = str(prop["$ref"])
        return FieldDefinition(
            name=name,
            kind=FieldKind.REFERENCE,
            references={"definition": ref.rsplit("/", 1)[-1]},
        )

    fd = FieldDefinition(name=name, kind=_resolve_type(prop))

    if prop.get("format"):
        fd.format = FORMAT_MAPPING.get(prop["format"], prop["format"])

    if prop.get("minimum") is not None:
        fd.min = prop["minimum"]
    if prop.get("maximum") is not None:
        fd.max = prop["maximum"]
    if prop.get("minLength") is not None:
        fd.min = prop["minLength"]
    if prop.get("maxLength") is not None:
        fd.max = prop["maxLength"]
    if prop.get("pattern"):
        fd.pattern = prop["pattern"]
    if "default" in prop:
        fd.default = prop["default"]

    enum_values = prop.get("enum")
    if isinstance(enum_values, list) and enum_values:
        fd.kind = FieldKind.ENUM
        fd.values = list(enum_values)

    if fd.kind == FieldKind.ARRAY:
        items = prop.get("items")
        if isinstance(items, list):
            # Tuple validation: the first positional schema stands for all
            items = items[0] if items else None
        fd.items = parse_property(name, items) if items is not None else FieldDefinition(name=name)
        if prop.get("minItems") is not None:
            fd.min_items = prop["minItems"]
        if prop.get("maxItems") is not None:
            fd.max_items = prop["maxItems"]

    if fd.kind == FieldKind.OBJECT:
        fd.properties = parse_properties(prop.get("properties") or {})
        _promote_required(fd.properties, prop.get("required"))

    return fd


def parse_properties(properties: Any) -> dict[str, FieldDefinition]:
    """Convert a JSON Schema ``properties`` map into named FieldDefinitions."""
    if not isinstance(properties, Mapping):
        raise InputShapeError("'properties' must be an object")
    return {name: parse_property(name, prop) for name, prop in properties.items()}


def _promote_required(fields: dict[str, FieldDefinition], required: Any) -> None:
    if not isinstance(required, list):
        return
    for field_name in required:
        if field_name in fields:
            fields[field_name].required = True


class JsonSchemaParser(BaseParser):
    """Parses JSON Schema documents into a CanonicalSchema."""

    format = SourceFormat.JSON_SCHEMA

    def parse(self, content: Any, **kwargs) -> CanonicalSchema:
        options = kwargs.get("options") or {}
        try:
            data = self._load(content)
            if not isinstance(data, Mapping):
                raise InputShapeError("Invalid JSON Schema: must be an object")
            return self._parse_document(data, options)
        except InputShapeError:
            raise
        except Exception as e:
            raise InputShapeError(f"JSON Schema parsing error: {e}", cause=e) from e

    def _load(self, content: Any) -> Any:
        if isinstance(content, Mapping):
            return content
        if not isinstance(content, str):
            raise InputShapeError(
                f"Invalid JSON Schema: expected an object or a string, got {type(content).__name__}"
            )
        stripped = content.strip()
        if stripped.startswith("{") or stripped.startswith("["):
            return json.loads(stripped)
        return yaml.safe_load(stripped)

    def _parse_document(self, data: Mapping, options: Mapping) -> CanonicalSchema:
        schema = CanonicalSchema(title=data.get("title") or options.get("title") or "Untitled Schema")

        if data.get("properties") is not None:
            schema.fields = parse_properties(data["properties"])
        _promote_required(schema.fields, data.get("required"))

        raw_definitions = data.get("definitions")
        if raw_definitions is None:
            raw_definitions = (data.get("components") or {}).get("schemas")
        if raw_definitions is not None:
            schema.definitions = {}
            for def_name, definition in raw_definitions.items():
                if isinstance(definition, Mapping) and definition.get("properties"):
                    fields = parse_properties(definition["properties"])
                    _promote_required(fields, definition.get("required"))
                    schema.definitions[def_name] = fields

        logger.info(
            f"Parsed JSON Schema {schema.title!r}: {len(schema.fields)} fields, "
            f"{len(schema.definitions or {})} definitions"
        )
        return schema
