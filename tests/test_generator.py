"""Tests for the Generator pillar."""

import re

import pandas as pd
import pytest

from schema_synth.errors import InputShapeError, StructuralViolation
from schema_synth.generator.field_sampler import FieldSampler, generate_value
from schema_synth.generator.frames import to_dataframe, to_dataframes
from schema_synth.generator.record_generator import generate_record, generate_records
from schema_synth.generator.relationship_preserver import (
    Relation,
    RelationKind,
    RelationshipPreserver,
    generate_related_records,
    wiring_order,
)
from schema_synth.schema.model import CanonicalSchema, FieldDefinition, FieldKind
from schema_synth.source_loader.loader import parse_schema


USER_SCHEMA = {
    "fields": {
        "id": {"kind": "string", "format": "uuid"},
        "email": {"kind": "string", "format": "email"},
        "age": {"kind": "integer", "min": 18, "max": 99},
        "score": {"kind": "number", "min": 0, "max": 1, "precision": 2},
        "active": "boolean",
        "role": {"kind": "enum", "values": ["admin", "member"]},
        "tags": {"kind": "array", "items": "string", "minItems": 1, "maxItems": 3},
        "home": "address",
    }
}

AUTHOR_SCHEMA = {"fields": {"id": {"kind": "string", "format": "uuid"}, "name": {"kind": "string", "format": "name"}}}
BOOK_SCHEMA = {"fields": {"title": {"kind": "string", "format": "sentence"}}}

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}$")


# ---------------------------------------------------------------------------
# FieldSampler
# ---------------------------------------------------------------------------

class TestFieldSampler:

    def setup_method(self):
        self.sampler = FieldSampler(seed=42)

    def test_integer_within_bounds(self):
        values = [self.sampler.generate("integer", {"min": 0, "max": 10}) for _ in range(1000)]
        assert all(isinstance(v, int) and 0 <= v <= 10 for v in values)

    def test_integer_single_bound(self):
        values = [self.sampler.generate("integer", {"min": 2000}) for _ in range(50)]
        assert all(v >= 2000 for v in values)

    def test_array_exact_length(self):
        for _ in range(100):
            assert len(self.sampler.generate("array", {"minItems": 2, "maxItems": 2})) == 2

    def test_array_elements_follow_items(self):
        value = self.sampler.generate("array", {"items": {"kind": "integer", "min": 1, "max": 1}})
        assert value and all(v == 1 for v in value)

    def test_number_rounding(self):
        value = self.sampler.generate("number", {"min": 0, "max": 1, "precision": 2})
        assert 0 <= value <= 1
        assert round(value, 2) == value

    def test_scale_takes_precedence_over_precision(self):
        value = self.sampler.generate("number", {"min": 0, "max": 100, "precision": 10, "scale": 1})
        assert round(value, 1) == value

    def test_boolean(self):
        values = {self.sampler.generate("boolean") for _ in range(100)}
        assert values == {True, False}

    def test_string_default_length(self):
        values = [self.sampler.generate("string") for _ in range(100)]
        assert all(5 <= len(v) <= 10 and v.isalpha() for v in values)

    def test_string_max_below_default_min(self):
        values = [self.sampler.generate("string", {"max": 3}) for _ in range(50)]
        assert all(len(v) <= 3 for v in values)

    def test_string_min_above_default_max(self):
        values = [self.sampler.generate("string", {"min": 20}) for _ in range(50)]
        assert all(len(v) >= 20 for v in values)

    def test_min_length_from_json_schema(self):
        schema = parse_schema({"properties": {"code": {"type": "string", "minLength": 12}}})
        records = generate_records(schema, count=20, seed=3)
        assert all(len(r["code"]) >= 12 for r in records)

    def test_string_formats(self):
        assert "@" in self.sampler.generate("string", {"format": "email"})
        assert len(self.sampler.generate("string", {"format": "uuid"})) == 36
        assert ISO_DATE.match(self.sampler.generate("string", {"format": "date"}))
        assert ISO_DATETIME.match(self.sampler.generate("string", {"format": "datetime"}))
        assert re.match(r"^[0-9a-f]{24}$", self.sampler.generate("string", {"format": "objectid"}))

    def test_dates_in_window(self):
        values = [self.sampler.generate("string", {"format": "date"}) for _ in range(200)]
        assert all("2020-01-01" <= v <= "2025-12-31" for v in values)

    def test_enum_pick(self):
        values = {self.sampler.generate("enum", {"values": ["a", "b", "c"]}) for _ in range(100)}
        assert values <= {"a", "b", "c"}

    def test_enum_without_values(self):
        with pytest.raises(StructuralViolation):
            self.sampler.generate("enum", {"values": []})

    def test_inverted_bounds(self):
        with pytest.raises(StructuralViolation):
            self.sampler.generate("integer", {"min": 10, "max": 1})

    def test_object(self):
        value = self.sampler.generate("object", {"properties": {"n": "integer", "ok": "boolean"}})
        assert set(value) == {"n", "ok"}

    @pytest.mark.parametrize("shape,keys", [
        ("address", {"street", "city", "state", "country", "zipCode"}),
        ("person", {"firstName", "lastName", "email", "phone"}),
        ("company", {"name", "catchPhrase", "industry"}),
        ("product", {"name", "description", "price", "category"}),
        ("transaction", {"id", "amount", "date", "currency", "description"}),
    ])
    def test_domain_composites(self, shape, keys):
        assert set(self.sampler.generate(shape)) == keys

    def test_reference_uses_default(self):
        assert self.sampler.generate("reference", {"default": "abc"}) == "abc"
        assert len(self.sampler.generate("reference")) == 36

    def test_unknown_kind_falls_back_to_string(self):
        value = self.sampler.generate("geo")
        assert isinstance(value, str)
        assert 5 <= len(value) <= 10

    def test_canonical_array_without_items(self):
        with pytest.raises(StructuralViolation):
            self.sampler.generate_field(FieldDefinition(name="tags", kind=FieldKind.ARRAY))

    def test_same_seed_same_values(self):
        first = FieldSampler(seed=7)
        second = FieldSampler(seed=7)
        for kind in ("string", "integer", "person", "transaction"):
            assert first.generate(kind) == second.generate(kind)

    def test_generate_value(self):
        assert isinstance(generate_value("integer", {"min": 1, "max": 2}), int)


# ---------------------------------------------------------------------------
# Record generation
# ---------------------------------------------------------------------------

class TestRecordGenerator:

    @pytest.mark.parametrize("count", [0, 1, 7])
    def test_count_and_keys(self, count):
        records = generate_records(USER_SCHEMA, count=count, seed=1)
        assert len(records) == count
        assert all(set(r) == set(USER_SCHEMA["fields"]) for r in records)

    def test_default_count(self):
        assert len(generate_records(USER_SCHEMA, seed=1)) == 10

    def test_deterministic_with_seed(self):
        assert generate_records(USER_SCHEMA, count=5, seed=42) == generate_records(USER_SCHEMA, count=5, seed=42)

    def test_different_seeds_differ(self):
        assert generate_records(USER_SCHEMA, count=5, seed=1) != generate_records(USER_SCHEMA, count=5, seed=2)

    def test_values_respect_fields(self):
        for record in generate_records(USER_SCHEMA, count=20, seed=3):
            assert 18 <= record["age"] <= 99
            assert record["role"] in ("admin", "member")
            assert 1 <= len(record["tags"]) <= 3
            assert "city" in record["home"]

    def test_canonical_schema_input(self):
        schema = parse_schema("interface User { name: string; age?: number; }")
        record = generate_record(schema, FieldSampler(seed=1))
        assert list(record) == ["name", "age"]

    def test_properties_input(self):
        schema = {"properties": {"n": {"type": "integer", "minimum": 5, "maximum": 5}, "s": {"type": "string"}}}
        record = generate_record(schema)
        assert record["n"] == 5
        assert isinstance(record["s"], str)

    def test_fields_take_precedence_over_properties(self):
        schema = {"fields": {"a": "boolean"}, "properties": {"b": {"type": "string"}}}
        assert list(generate_record(schema)) == ["a"]

    def test_name_list_input(self):
        record = generate_record(["first", "second"])
        assert list(record) == ["first", "second"]
        assert all(isinstance(v, str) for v in record.values())

    def test_negative_count(self):
        with pytest.raises(ValueError):
            generate_records(USER_SCHEMA, count=-1)

    def test_unsupported_shape(self):
        with pytest.raises(InputShapeError):
            generate_record(42)
        with pytest.raises(InputShapeError):
            generate_record({"title": "nothing"})

    def test_schema_not_mutated(self):
        schema = CanonicalSchema(title="T", fields={"n": FieldDefinition(name="n", kind=FieldKind.INTEGER)})
        generate_records(schema, count=3, seed=1)
        assert schema.fields["n"] == FieldDefinition(name="n", kind=FieldKind.INTEGER)


# ---------------------------------------------------------------------------
# Relation wiring
# ---------------------------------------------------------------------------

class TestRelationshipPreserver:

    def test_one_to_many_every_child_linked(self):
        related = generate_related_records(
            {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA},
            [{"from": "author", "to": "book", "kind": "one-to-many", "foreignKey": "authorId"}],
            {"author": {"count": 3}, "book": {"count": 5}},
        )
        author_ids = {a["id"] for a in related["author"]}
        assert len(related["author"]) == 3
        assert len(related["book"]) == 5
        assert all(b["authorId"] in author_ids for b in related["book"])

    def test_default_foreign_key_names(self):
        assert Relation("author", "book", "one-to-many").fk_column == "authorId"
        assert Relation("book", "author", "many-to-one").fk_column == "authorId"
        assert Relation("book", "author", "many-to-one", "writer").fk_column == "writer"

    def test_many_to_one(self):
        related = generate_related_records(
            {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA},
            [Relation(source="book", target="author", kind=RelationKind.MANY_TO_ONE)],
            {"author": {"count": 2}, "book": {"count": 6}},
        )
        author_ids = {a["id"] for a in related["author"]}
        assert all(b["authorId"] in author_ids for b in related["book"])
        assert all("bookId" not in a for a in related["author"])

    def test_type_key_accepted(self):
        rel = Relation.from_dict({"from": "a", "to": "b", "type": "many-to-one"})
        assert rel.kind == RelationKind.MANY_TO_ONE

    def test_ids_assigned_when_missing(self):
        related = generate_related_records({"book": BOOK_SCHEMA}, options={"book": {"count": 4}})
        ids = [b["id"] for b in related["book"]]
        assert len(set(ids)) == 4

    def test_existing_ids_kept(self):
        schema = {"fields": {"id": {"kind": "integer", "min": 1, "max": 1}}}
        related = generate_related_records({"thing": schema}, options={"thing": {"count": 2}})
        assert [t["id"] for t in related["thing"]] == [1, 1]

    def test_seeded_related_records_deterministic(self):
        def run():
            return generate_related_records(
                {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA},
                [{"from": "author", "to": "book", "kind": "one-to-many"}],
                {"author": {"count": 3, "seed": 1}, "book": {"count": 8, "seed": 2}},
                seed=3,
            )
        assert run() == run()

    def test_empty_target_left_alone(self):
        related = generate_related_records(
            {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA},
            [{"from": "author", "to": "book", "kind": "one-to-many"}],
            {"author": {"count": 2}, "book": {"count": 0}},
        )
        assert related["book"] == []
        assert len(related["author"]) == 2

    def test_unknown_schema_name(self):
        with pytest.raises(ValueError):
            generate_related_records({"author": AUTHOR_SCHEMA}, [{"from": "author", "to": "ghost"}])

    def test_unknown_relation_kind(self):
        with pytest.raises(ValueError):
            Relation("author", "book", "many-to-many")

    def test_assignment_map_merge(self):
        records = {"author": [{"id": "a1"}], "book": [{"id": "b1"}, {"id": "b2"}]}
        preserver = RelationshipPreserver(["author", "book"], [{"from": "author", "to": "book"}])
        assignments = preserver.compute_assignments(records, FieldSampler(seed=1))
        assert assignments == {("book", 0): {"authorId": "a1"}, ("book", 1): {"authorId": "a1"}}
        # Computing the map does not touch the records
        assert "authorId" not in records["book"][0]
        preserver.apply_assignments(records, assignments)
        assert [b["authorId"] for b in records["book"]] == ["a1", "a1"]

    def test_wiring_order_parents_first(self):
        order = wiring_order(
            {"book": BOOK_SCHEMA, "author": AUTHOR_SCHEMA, "review": BOOK_SCHEMA},
            [
                {"from": "book", "to": "author", "kind": "many-to-one"},
                {"from": "book", "to": "review", "kind": "one-to-many"},
            ],
        )
        assert order.index("author") < order.index("book") < order.index("review")

    def test_result_keeps_schema_order(self):
        related = generate_related_records(
            {"book": BOOK_SCHEMA, "author": AUTHOR_SCHEMA},
            [{"from": "book", "to": "author", "kind": "many-to-one"}],
            {"book": {"count": 1}, "author": {"count": 1}},
        )
        assert list(related) == ["book", "author"]


# ---------------------------------------------------------------------------
# DataFrame views
# ---------------------------------------------------------------------------

class TestFrames:

    def test_columns_follow_schema_then_extras(self):
        records = [{"b": 1, "a": 2, "extra": 3}]
        df = to_dataframe(records, {"fields": {"a": "integer", "b": "integer"}})
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["a", "b", "extra"]

    def test_without_schema(self):
        df = to_dataframe([{"x": 1}, {"y": 2}])
        assert list(df.columns) == ["x", "y"]
        assert len(df) == 2

    def test_to_dataframes(self):
        related = generate_related_records(
            {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA},
            [{"from": "author", "to": "book"}],
            {"author": {"count": 2}, "book": {"count": 3}},
        )
        frames = to_dataframes(related, {"author": AUTHOR_SCHEMA, "book": BOOK_SCHEMA})
        assert len(frames["book"]) == 3
        assert list(frames["book"].columns) == ["title", "id", "authorId"]
