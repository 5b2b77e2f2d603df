"""Tests for the canonical schema model, enhancer and schema helpers."""

import pytest

from schema_synth.errors import StructuralViolation
from schema_synth.schema.enhancer import enhance_schema, infer_format
from schema_synth.schema.model import (
    CanonicalSchema,
    FieldDefinition,
    FieldKind,
    check_invariants,
    validate_field,
    validate_schema,
)
from schema_synth.schema.utils import extract_fields, merge_schemas, to_json_schema


def _schema(**fields):
    return CanonicalSchema(title="Test", fields={k: FieldDefinition.from_dict(k, v) for k, v in fields.items()})


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

class TestFieldDefinition:

    def test_from_bare_kind(self):
        fd = FieldDefinition.from_dict("count", "integer")
        assert fd.name == "count"
        assert fd.kind == FieldKind.INTEGER

    def test_type_alias_and_wire_names(self):
        fd = FieldDefinition.from_dict("tags", {
            "type": "array", "items": "string", "minItems": 2, "maxItems": 4, "primaryKey": False,
        })
        assert fd.kind == FieldKind.ARRAY
        assert fd.items.kind == FieldKind.STRING
        assert (fd.min_items, fd.max_items) == (2, 4)
        assert fd.primary_key is False

    def test_domain_shape_name(self):
        fd = FieldDefinition.from_dict("home", "address")
        assert fd.kind == FieldKind.DOMAIN_COMPOSITE
        assert fd.format == "address"

    def test_unknown_kind_kept(self):
        fd = FieldDefinition.from_dict("spot", {"kind": "geo"})
        assert fd.kind == "geo"

    def test_to_dict_uses_wire_names(self):
        fd = FieldDefinition(name="id", kind=FieldKind.INTEGER, primary_key=True, required=True)
        assert fd.to_dict() == {"name": "id", "kind": "integer", "required": True, "primaryKey": True}

    def test_schema_dict_round_trip(self):
        schema = _schema(
            id={"kind": "integer", "primaryKey": True},
            tags={"kind": "array", "items": {"kind": "enum", "values": ["a", "b"]}},
            owner={"kind": "object", "properties": {"name": "string"}},
        )
        schema.definitions = {"Owner": {"name": FieldDefinition(name="name")}}
        assert CanonicalSchema.from_dict(schema.to_dict()) == schema

    def test_non_mapping_definition(self):
        with pytest.raises(StructuralViolation):
            FieldDefinition.from_dict("bad", 12)


class TestValidation:

    def test_array_without_items(self):
        with pytest.raises(StructuralViolation) as exc:
            check_invariants(FieldDefinition(name="tags", kind=FieldKind.ARRAY))
        assert str(exc.value) == "tags: array field has no items"
        assert exc.value.path == "tags"

    def test_enum_without_values(self):
        with pytest.raises(StructuralViolation):
            check_invariants(FieldDefinition(name="status", kind=FieldKind.ENUM, values=[]))

    def test_object_without_properties(self):
        with pytest.raises(StructuralViolation):
            check_invariants(FieldDefinition(name="meta", kind=FieldKind.OBJECT))

    def test_inverted_bounds(self):
        with pytest.raises(StructuralViolation):
            check_invariants(FieldDefinition(name="age", kind=FieldKind.INTEGER, min=10, max=1))
        with pytest.raises(StructuralViolation):
            check_invariants(FieldDefinition(
                name="tags", kind=FieldKind.ARRAY, items=FieldDefinition(name="t"), min_items=3, max_items=1,
            ))

    def test_unknown_kind_passes_shape_check(self):
        check_invariants(FieldDefinition(name="spot", kind="geo"))

    def test_validate_field_rejects_unknown_kind(self):
        with pytest.raises(StructuralViolation):
            validate_field(FieldDefinition(name="spot", kind="geo"))

    def test_validate_field_recurses(self):
        fd = FieldDefinition(
            name="owner",
            kind=FieldKind.OBJECT,
            properties={"roles": FieldDefinition(name="roles", kind=FieldKind.ARRAY)},
        )
        with pytest.raises(StructuralViolation) as exc:
            validate_field(fd)
        assert exc.value.path == "owner.roles"

    def test_validate_schema(self):
        validate_schema(_schema(name="string", age={"kind": "integer", "min": 0}))
        with pytest.raises(StructuralViolation):
            validate_schema(CanonicalSchema(title="Bad", type="array"))

    def test_validate_schema_checks_definitions(self):
        schema = _schema(name="string")
        schema.definitions = {"Tag": {"values": FieldDefinition(name="values", kind=FieldKind.ENUM)}}
        with pytest.raises(StructuralViolation):
            validate_schema(schema)


# ---------------------------------------------------------------------------
# Enhancer
# ---------------------------------------------------------------------------

class TestEnhancer:

    def test_email_inferred_with_bounds(self):
        enhanced = enhance_schema(_schema(contactEmail="string"))
        fd = enhanced.fields["contactEmail"]
        assert fd.format == "email"
        assert (fd.min, fd.max) == (5, 255)

    def test_existing_format_untouched(self):
        enhanced = enhance_schema(_schema(emailLink={"kind": "string", "format": "url"}))
        assert enhanced.fields["emailLink"].format == "url"

    def test_does_not_mutate_input(self):
        schema = _schema(contactEmail="string")
        enhanced = enhance_schema(schema)
        assert schema.fields["contactEmail"].format is None
        assert enhanced is not schema

    @pytest.mark.parametrize("name,expected", [
        ("mobileNumber", "phone"),
        ("homepageUrl", "url"),
        ("userGuid", "uuid"),
        ("birthDate", "date"),
        ("lastLoginDatetime", "datetime"),
        ("password", "password"),
        ("nickname", None),
    ])
    def test_infer_format(self, name, expected):
        assert infer_format(name) == expected

    def test_name_and_description_bounds(self):
        fields = enhance_schema(_schema(fullName="string", description="string")).fields
        assert (fields["fullName"].min, fields["fullName"].max) == (2, 100)
        assert (fields["description"].min, fields["description"].max) == (10, 1000)

    def test_explicit_bound_blocks_defaults(self):
        fd = enhance_schema(_schema(email={"kind": "string", "max": 50})).fields["email"]
        assert fd.format == "email"
        assert fd.min is None
        assert fd.max == 50

    def test_non_string_fields_ignored(self):
        fd = enhance_schema(_schema(emailCount="integer")).fields["emailCount"]
        assert fd.format is None

    def test_nested_fields_not_enhanced(self):
        schema = _schema(owner={"kind": "object", "properties": {"email": "string"}})
        nested = enhance_schema(schema).fields["owner"].properties["email"]
        assert nested.format is None


# ---------------------------------------------------------------------------
# Schema helpers
# ---------------------------------------------------------------------------

class TestSchemaUtils:

    def test_merge_later_fields_win(self):
        first = _schema(id="integer", name="string")
        second = CanonicalSchema(title="Other", fields={"name": FieldDefinition(name="name", format="name")})
        merged = merge_schemas(first, second)
        assert merged.title == "Test"
        assert merged.field_names == ["id", "name"]
        assert merged.fields["name"].format == "name"
        assert first.fields["name"].format is None

    def test_merge_nothing(self):
        assert merge_schemas().title == "Empty Schema"
        assert merge_schemas(None).fields == {}

    def test_extract_fields(self):
        subset = extract_fields(_schema(id="integer", name="string", age="integer"), ["age", "id", "missing"])
        assert subset.field_names == ["age", "id"]

    def test_to_json_schema(self):
        schema = _schema(
            email={"kind": "string", "format": "email", "min": 5, "max": 255, "required": True},
            age={"kind": "integer", "min": 0},
            status={"kind": "enum", "values": ["on", "off"]},
            tags={"kind": "array", "items": "string", "minItems": 1},
            owner={"kind": "object", "properties": {"name": {"kind": "string", "required": True}}},
        )
        doc = to_json_schema(schema)
        assert doc["title"] == "Test"
        assert doc["required"] == ["email"]
        props = doc["properties"]
        assert props["email"] == {"type": "string", "format": "email", "minLength": 5, "maxLength": 255}
        assert props["age"] == {"type": "integer", "minimum": 0}
        assert props["status"] == {"type": "string", "enum": ["on", "off"]}
        assert props["tags"] == {"type": "array", "minItems": 1, "items": {"type": "string"}}
        assert props["owner"]["required"] == ["name"]

    def test_to_json_schema_omits_empty_required(self):
        assert "required" not in to_json_schema(_schema(name="string"))
