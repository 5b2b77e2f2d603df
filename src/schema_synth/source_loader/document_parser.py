"""Document-model parser — handles Mongoose-style path descriptor maps.

Accepts either a schema mapping or a model mapping wrapping one:
  { "paths": { "email": {"instance": "String", "options": {...}}, ... } }
  { "schema": { "paths": {...}, "options": {"collection": "users"} } }

Each path descriptor is { instance, options, schema?, caster? }. Sub-schemas
and array element casters are walked recursively; dotted paths
("address.city") are folded back into nested object fields.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from schema_synth.errors import InputShapeError
from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind
from schema_synth.source_loader.base import BaseParser, SourceFormat

logger = logging.getLogger(__name__)

# Descriptor instance -> (canonical kind, implied format)
INSTANCE_MAPPING: dict[str, tuple[FieldKind, Optional[str]]] = {
    "String": (FieldKind.STRING, None),
    "Number": (FieldKind.NUMBER, None),
    "Decimal128": (FieldKind.NUMBER, None),
    "BigInt": (FieldKind.INTEGER, None),
    "Int32": (FieldKind.INTEGER, None),
    "Double": (FieldKind.NUMBER, None),
    "Date": (FieldKind.STRING, "date"),
    "Buffer": (FieldKind.STRING, None),
    "Boolean": (FieldKind.BOOLEAN, None),
    "Mixed": (FieldKind.OBJECT, None),
    "Map": (FieldKind.OBJECT, None),
    "Embedded": (FieldKind.OBJECT, None),
    "SubDocument": (FieldKind.OBJECT, None),
    "ObjectId": (FieldKind.STRING, "objectid"),
    "ObjectID": (FieldKind.STRING, "objectid"),
    "UUID": (FieldKind.STRING, "uuid"),
    "Array": (FieldKind.ARRAY, None),
    "DocumentArray": (FieldKind.ARRAY, None),
}

IDENTITY_PATH = "_id"


def _pattern_source(match: Any) -> str:
    if isinstance(match, re.Pattern):
        return match.pattern
    if isinstance(match, (list, tuple)) and match:
        # [regex, message] validator form
        return _pattern_source(match[0])
    return str(match)


def _is_required(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else False
    if callable(value):
        # Conditionally required; cannot be decided statically
        return False
    return bool(value)


class DocumentParser(BaseParser):
    """Parses document-model path descriptors into a CanonicalSchema."""

    format = SourceFormat.DOCUMENT

    def parse(self, content: Any, **kwargs) -> CanonicalSchema:
        options = kwargs.get("options") or {}
        if not isinstance(content, Mapping):
            raise InputShapeError(
                f"Invalid document schema: must be a schema or model mapping, got {type(content).__name__}"
            )
        try:
            schema = self._unwrap(content)
            schema_options = schema.get("options") or {}
            result = CanonicalSchema(
                title=options.get("title") or schema_options.get("collection") or "Untitled Schema",
                fields=self.parse_paths(schema),
            )
        except InputShapeError:
            raise
        except Exception as e:
            raise InputShapeError(f"Document schema parsing error: {e}", cause=e) from e

        logger.info(f"Parsed document schema {result.title!r}: {len(result.fields)} fields")
        return result

    def _unwrap(self, content: Mapping) -> Mapping:
        """Return the schema of a model mapping, or the mapping itself."""
        nested = content.get("schema")
        if "paths" not in content and isinstance(nested, Mapping):
            return nested
        return content

    def parse_paths(self, schema: Any) -> dict[str, FieldDefinition]:
        """Convert every non-internal path of ``schema`` into a field."""
        fields: dict[str, FieldDefinition] = {}
        if not isinstance(schema, Mapping) or not isinstance(schema.get("paths"), Mapping):
            return fields

        for name, path in schema["paths"].items():
            # Skip internal bookkeeping paths such as __v
            if name.startswith("_") and name != IDENTITY_PATH:
                continue
            parts = name.split(".")
            fd = self._parse_path(parts[-1], path)
            self._insert(fields, parts, fd)
        return fields

    def _insert(self, fields: dict[str, FieldDefinition], parts: list[str], fd: FieldDefinition) -> None:
        """Place ``fd`` at a dotted path, creating parent object fields."""
        container = fields
        for part in parts[:-1]:
            parent = container.get(part)
            if parent is None or parent.kind != FieldKind.OBJECT:
                parent = FieldDefinition(name=part, kind=FieldKind.OBJECT, properties={})
                container[part] = parent
            if parent.properties is None:
                parent.properties = {}
            container = parent.properties
        container[parts[-1]] = fd

    def _parse_path(self, name: str, path: Any) -> FieldDefinition:
        if not isinstance(path, Mapping) or not path.get("instance"):
            return FieldDefinition(name=name)

        instance = str(path["instance"])
        kind, fmt = INSTANCE_MAPPING.get(instance, (FieldKind.STRING, None))
        if path.get("schema") is not None and kind not in (FieldKind.ARRAY, FieldKind.OBJECT):
            kind = FieldKind.OBJECT
        fd = FieldDefinition(name=name, kind=kind, format=fmt)

        opts = path.get("options") or {}
        if _is_required(opts.get("required")):
            fd.required = True
        if opts.get("unique"):
            fd.unique = True
        if "default" in opts and opts["default"] is not None and not callable(opts["default"]):
            fd.default = opts["default"]

        if instance == "String":
            self._apply_string_options(fd, opts)
        elif kind in (FieldKind.NUMBER, FieldKind.INTEGER):
            if opts.get("min") is not None:
                fd.min = _validator_value(opts["min"])
            if opts.get("max") is not None:
                fd.max = _validator_value(opts["max"])

        if kind == FieldKind.ARRAY:
            if path.get("schema") is not None:
                fd.items = FieldDefinition(
                    name=name, kind=FieldKind.OBJECT, properties=self.parse_paths(path["schema"])
                )
            elif path.get("caster") is not None:
                fd.items = self._parse_path(name, path["caster"])
            else:
                fd.items = FieldDefinition(name=name)
        elif kind == FieldKind.OBJECT:
            fd.properties = self.parse_paths(path.get("schema"))

        return fd

    def _apply_string_options(self, fd: FieldDefinition, opts: Mapping) -> None:
        enum = opts.get("enum")
        if isinstance(enum, Mapping):
            enum = enum.get("values")
        if isinstance(enum, (list, tuple)) and enum:
            fd.kind = FieldKind.ENUM
            fd.values = list(enum)

        if opts.get("match"):
            fd.pattern = _pattern_source(opts["match"])
            if "@" in fd.pattern:
                fd.format = "email"
            elif "http" in fd.pattern:
                fd.format = "url"

        for key in ("minlength", "minLength"):
            if opts.get(key) is not None:
                fd.min = _validator_value(opts[key])
        for key in ("maxlength", "maxLength"):
            if opts.get(key) is not None:
                fd.max = _validator_value(opts[key])

        if fd.kind == FieldKind.STRING and not fd.format:
            lowered = fd.name.lower()
            if "email" in lowered:
                fd.format = "email"
            elif "phone" in lowered:
                fd.format = "phone"
            elif lowered == "url" or "website" in lowered:
                fd.format = "url"


def _validator_value(value: Any) -> Any:
    """Unwrap the ``[bound, message]`` validator form."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value
