"""Canonical schema model shared by every parser and the generator.

All parsers convert their notation into a CanonicalSchema of FieldDefinitions.
The model is a plain dataclass tree: parsers build it once, the enhancer
returns extended copies, and the generator only reads it.

Invariants (checked by validate_field / validate_schema):
- kind is one of FieldKind
- array fields carry ``items``
- enum fields carry non-empty ``values``
- object fields carry ``properties`` (may be empty)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from schema_synth.errors import StructuralViolation


class FieldKind(str, Enum):
    """Closed set of canonical field kinds."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"
    DOMAIN_COMPOSITE = "domain-composite"
    REFERENCE = "reference"

    @classmethod
    def coerce(cls, value: Any) -> Optional[FieldKind]:
        """Return the matching kind, or None for names outside the set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


# Shapes generated for kind=domain-composite, selected through ``format``
DOMAIN_SHAPES = ("address", "person", "company", "product", "transaction")

# Wire name -> dataclass attribute, for the scalar members
_WIRE_NAMES = {
    "format": "format",
    "required": "required",
    "unique": "unique",
    "primaryKey": "primary_key",
    "min": "min",
    "max": "max",
    "minItems": "min_items",
    "maxItems": "max_items",
    "precision": "precision",
    "scale": "scale",
    "pattern": "pattern",
    "values": "values",
    "default": "default",
    "references": "references",
}

Number = Union[int, float]


@dataclass
class FieldDefinition:
    """One field's kind, format and constraints."""

    name: str
    kind: FieldKind = FieldKind.STRING
    format: Optional[str] = None
    required: Optional[bool] = None
    unique: Optional[bool] = None
    primary_key: Optional[bool] = None
    min: Optional[Number] = None
    max: Optional[Number] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    pattern: Optional[str] = None
    values: Optional[list[Any]] = None
    items: Optional[FieldDefinition] = None
    properties: Optional[dict[str, FieldDefinition]] = None
    default: Any = None
    references: Optional[dict[str, str]] = None

    def __post_init__(self):
        kind = FieldKind.coerce(self.kind)
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire names, omitting unset members."""
        out: dict[str, Any] = {"name": self.name, "kind": _kind_value(self.kind)}
        for wire, attr in _WIRE_NAMES.items():
            value = getattr(self, attr)
            if value is not None:
                out[wire] = copy.deepcopy(value)
        if self.items is not None:
            out["items"] = self.items.to_dict()
        if self.properties is not None:
            out["properties"] = {k: v.to_dict() for k, v in self.properties.items()}
        return out

    @classmethod
    def from_dict(cls, name: str, data: Union[dict, str, FieldDefinition]) -> FieldDefinition:
        """Build a field from a wire dict, a bare kind name, or an existing field.

        Accepts ``type`` as a legacy alias for ``kind`` and both the wire and
        the attribute spelling of multi-word members. Domain shape names used
        as a kind (``"address"``) become domain-composite with that format;
        any other unknown kind is kept as given so the generator can apply
        its string fallback.
        """
        if isinstance(data, FieldDefinition):
            return copy.deepcopy(data)
        if isinstance(data, str):
            data = {"kind": data}
        if not isinstance(data, dict):
            raise StructuralViolation(f"field definition must be a mapping, got {type(data).__name__}", name)

        raw_kind = data.get("kind", data.get("type", FieldKind.STRING.value))
        kwargs: dict[str, Any] = {}
        for wire, attr in _WIRE_NAMES.items():
            if wire in data:
                kwargs[attr] = copy.deepcopy(data[wire])
            elif attr in data:
                kwargs[attr] = copy.deepcopy(data[attr])

        if FieldKind.coerce(raw_kind) is None and str(raw_kind).lower() in DOMAIN_SHAPES:
            kwargs.setdefault("format", str(raw_kind).lower())
            raw_kind = FieldKind.DOMAIN_COMPOSITE

        items = data.get("items")
        if items is not None:
            kwargs["items"] = cls.from_dict(f"{name}[]", items)
        properties = data.get("properties")
        if properties is not None:
            kwargs["properties"] = {k: cls.from_dict(k, v) for k, v in properties.items()}

        return cls(name=data.get("name", name), kind=raw_kind, **kwargs)


@dataclass
class CanonicalSchema:
    """Unified schema produced by every parser."""

    title: str = "Untitled Schema"
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    definitions: Optional[dict[str, dict[str, FieldDefinition]]] = None
    type: str = "object"

    @property
    def field_names(self) -> list[str]:
        return list(self.fields)

    def copy(self) -> CanonicalSchema:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "title": self.title,
            "type": self.type,
            "fields": {k: v.to_dict() for k, v in self.fields.items()},
        }
        if self.definitions is not None:
            out["definitions"] = {
                name: {"fields": {k: v.to_dict() for k, v in fields.items()}}
                for name, fields in self.definitions.items()
            }
        return out

    @classmethod
    def from_dict(cls, data: dict) -> CanonicalSchema:
        fields = {k: FieldDefinition.from_dict(k, v) for k, v in data.get("fields", {}).items()}
        definitions = None
        if data.get("definitions") is not None:
            definitions = {
                name: {k: FieldDefinition.from_dict(k, v) for k, v in d.get("fields", {}).items()}
                for name, d in data["definitions"].items()
            }
        return cls(
            title=data.get("title", "Untitled Schema"),
            fields=fields,
            definitions=definitions,
            type=data.get("type", "object"),
        )


def _kind_value(kind: Any) -> str:
    return kind.value if isinstance(kind, FieldKind) else str(kind)


def check_invariants(fd: FieldDefinition, path: str = "") -> None:
    """Raise StructuralViolation if this single field breaks a shape invariant.

    Does not recurse and does not reject unknown kinds; the generator calls
    this before producing each value.
    """
    path = path or fd.name
    if fd.kind == FieldKind.ARRAY and fd.items is None:
        raise StructuralViolation("array field has no items", path)
    if fd.kind == FieldKind.ENUM and not fd.values:
        raise StructuralViolation("enum field has no values", path)
    if fd.kind == FieldKind.OBJECT and fd.properties is None:
        raise StructuralViolation("object field has no properties", path)
    if fd.min is not None and fd.max is not None and fd.min > fd.max:
        raise StructuralViolation(f"min {fd.min} exceeds max {fd.max}", path)
    if fd.min_items is not None and fd.max_items is not None and fd.min_items > fd.max_items:
        raise StructuralViolation(f"minItems {fd.min_items} exceeds maxItems {fd.max_items}", path)


def validate_field(fd: FieldDefinition, path: str = "") -> None:
    """Recursively validate a field, including its kind."""
    path = path or fd.name
    if not isinstance(fd.kind, FieldKind):
        raise StructuralViolation(f"unknown field kind {fd.kind!r}", path)
    check_invariants(fd, path)
    if fd.items is not None:
        validate_field(fd.items, f"{path}[]")
    for name, prop in (fd.properties or {}).items():
        validate_field(prop, f"{path}.{name}")


def validate_schema(schema: CanonicalSchema) -> None:
    """Validate every field and definition of a canonical schema."""
    if schema.type != "object":
        raise StructuralViolation(f"schema type must be 'object', got {schema.type!r}", schema.title)
    for name, fd in schema.fields.items():
        validate_field(fd, name)
    for def_name, fields in (schema.definitions or {}).items():
        for name, fd in fields.items():
            validate_field(fd, f"#/definitions/{def_name}/{name}")
