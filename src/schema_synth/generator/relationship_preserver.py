"""Relationship preserver — wires foreign keys between generated record sets.

Related generation runs in two phases. Phase 1 generates every named
schema's records independently and makes sure each record has an ``id``.
Phase 2 walks the relations in order, computes a foreign-key assignment
map ``{(schema, index): {column: value}}`` from the phase-1 identifiers and
merges it into the records (last write wins).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from schema_synth.generator.field_sampler import FieldSampler, default_sampler
from schema_synth.generator.record_generator import generate_records

logger = logging.getLogger(__name__)

IDENTITY_FIELD = "id"
MAX_CHILDREN_PER_PARENT = 3

Assignments = dict[tuple[str, int], dict[str, Any]]


class RelationKind(str, Enum):
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"


@dataclass
class Relation:
    """A directed relation between two named schemas.

    one-to-many: each ``source`` record owns several ``target`` records,
    which receive the foreign key (default ``f"{source}Id"``).
    many-to-one: each ``source`` record points at one ``target`` record
    and receives the foreign key (default ``f"{target}Id"``).
    """

    source: str
    target: str
    kind: RelationKind = RelationKind.ONE_TO_MANY
    foreign_key: Optional[str] = None

    def __post_init__(self):
        try:
            self.kind = RelationKind(self.kind)
        except ValueError:
            raise ValueError(f"Unknown relation kind: {self.kind!r}") from None

    @property
    def fk_column(self) -> str:
        if self.foreign_key:
            return self.foreign_key
        if self.kind == RelationKind.ONE_TO_MANY:
            return f"{self.source}Id"
        return f"{self.target}Id"

    @property
    def child(self) -> str:
        """Schema whose records carry the foreign key."""
        return self.target if self.kind == RelationKind.ONE_TO_MANY else self.source

    @property
    def parent(self) -> str:
        return self.source if self.kind == RelationKind.ONE_TO_MANY else self.target

    @classmethod
    def from_dict(cls, data: Mapping) -> Relation:
        """Build from ``{from, to, kind|type, foreignKey}`` or attribute names."""
        return cls(
            source=data.get("from", data.get("source")),
            target=data.get("to", data.get("target")),
            kind=data.get("kind", data.get("type", RelationKind.ONE_TO_MANY)),
            foreign_key=data.get("foreignKey", data.get("foreign_key")),
        )

    @classmethod
    def coerce(cls, value: Union[Relation, Mapping]) -> Relation:
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise ValueError(f"Relation must be a Relation or a mapping, got {type(value).__name__}")


@dataclass
class SchemaDependency:
    """A named schema and its foreign-key dependencies in the wiring graph."""

    name: str
    depends_on: list[str] = field(default_factory=list)


class RelationshipPreserver:
    """Computes and applies foreign-key assignments between record sets.

    Builds a dependency graph from the relations (the schema holding the
    foreign key depends on the one it references) for ordering, and draws
    every wiring choice from an explicit sampler.
    """

    def __init__(self, schema_names: list[str], relations: Optional[list] = None):
        self.schema_names = list(schema_names)
        self.relations = [Relation.coerce(r) for r in relations or []]
        for rel in self.relations:
            for name in (rel.source, rel.target):
                if name not in self.schema_names:
                    raise ValueError(f"Relation references unknown schema {name!r}")
        self.dependency_graph: dict[str, SchemaDependency] = {}
        self._build_graph()

    def get_generation_order(self) -> list[str]:
        """Return schema names with referenced schemas before their dependents."""
        visited = set()
        order = []

        def visit(name: str):
            if name in visited:
                return
            visited.add(name)
            for parent in self.dependency_graph[name].depends_on:
                visit(parent)
            order.append(name)

        for name in self.dependency_graph:
            visit(name)

        logger.debug(f"Wiring order: {order}")
        return order

    def compute_assignments(
        self, records: Mapping[str, list[dict]], sampler: FieldSampler
    ) -> Assignments:
        """Build the foreign-key assignment map for all relations, in order."""
        assignments: Assignments = defaultdict(dict)
        for rel in self.relations:
            if rel.kind == RelationKind.ONE_TO_MANY:
                self._assign_one_to_many(rel, records, sampler, assignments)
            else:
                self._assign_many_to_one(rel, records, sampler, assignments)
        return dict(assignments)

    @staticmethod
    def apply_assignments(records: Mapping[str, list[dict]], assignments: Assignments) -> None:
        """Merge an assignment map into the records it was computed from."""
        for (name, index), values in assignments.items():
            records[name][index].update(values)

    def _assign_one_to_many(
        self, rel: Relation, records: Mapping[str, list[dict]], sampler: FieldSampler, assignments: Assignments
    ) -> None:
        parents = records[rel.source]
        children = records[rel.target]
        if not parents or not children:
            logger.warning(f"Skipping {rel.source} -> {rel.target}: no records to wire")
            return

        column = rel.fk_column
        stamped = set()
        for parent in parents:
            wanted = sampler.py_rng.randint(1, MAX_CHILDREN_PER_PARENT)
            if wanted > len(children):
                logger.debug(f"{rel.source} -> {rel.target}: capped {wanted} children at {len(children)}")
                wanted = len(children)
            for index in sampler.py_rng.sample(range(len(children)), wanted):
                assignments[(rel.target, index)][column] = parent[IDENTITY_FIELD]
                stamped.add(index)

        # Children no parent sampled are adopted by a random parent
        for index in range(len(children)):
            if index not in stamped:
                parent = parents[sampler.py_rng.randrange(len(parents))]
                assignments[(rel.target, index)][column] = parent[IDENTITY_FIELD]

        logger.debug(f"Applied {rel.kind.value}: {rel.target}.{column} -> {rel.source}.{IDENTITY_FIELD}")

    def _assign_many_to_one(
        self, rel: Relation, records: Mapping[str, list[dict]], sampler: FieldSampler, assignments: Assignments
    ) -> None:
        children = records[rel.source]
        parents = records[rel.target]
        if not parents:
            logger.warning(f"No {rel.target} records; {rel.source}.{rel.fk_column} left unset")
            return

        column = rel.fk_column
        for index in range(len(children)):
            parent = parents[sampler.py_rng.randrange(len(parents))]
            assignments[(rel.source, index)][column] = parent[IDENTITY_FIELD]

        logger.debug(f"Applied {rel.kind.value}: {rel.source}.{column} -> {rel.target}.{IDENTITY_FIELD}")

    def _build_graph(self) -> None:
        for name in self.schema_names:
            self.dependency_graph[name] = SchemaDependency(name=name)

        for rel in self.relations:
            child, parent = rel.child, rel.parent
            if parent == child:
                continue
            if parent not in self.dependency_graph[child].depends_on:
                self.dependency_graph[child].depends_on.append(parent)


def wiring_order(schemas: Mapping[str, Any], relations: Optional[list] = None) -> list[str]:
    """Schema names in dependency-safe order for the given relations."""
    return RelationshipPreserver(list(schemas), relations).get_generation_order()


def generate_related_records(
    schemas: Mapping[str, Any],
    relations: Optional[list] = None,
    options: Optional[Mapping[str, Mapping]] = None,
    seed: Optional[int] = None,
) -> dict[str, list[dict]]:
    """Generate record sets for named schemas and wire their foreign keys.

    Args:
        schemas: Schema name -> any schema shape accepted by generate_records.
        relations: Relation objects or ``{from, to, kind, foreignKey}`` mappings.
        options: Schema name -> ``{"count": int, "seed": int}``.
        seed: Seeds the sampler that makes the wiring choices.

    Raises:
        ValueError: on an unknown relation kind or schema name.
    """
    options = options or {}
    preserver = RelationshipPreserver(list(schemas), relations)

    records: dict[str, list[dict]] = {}
    for name in preserver.get_generation_order():
        schema_opts = options.get(name) or {}
        schema_seed = schema_opts.get("seed")
        sampler = FieldSampler(seed=schema_seed) if schema_seed is not None else default_sampler()
        batch = generate_records(schemas[name], count=schema_opts.get("count"), sampler=sampler)
        for record in batch:
            if record.get(IDENTITY_FIELD) is None:
                record[IDENTITY_FIELD] = sampler.faker.uuid4()
        records[name] = batch

    wiring_sampler = FieldSampler(seed=seed) if seed is not None else default_sampler()
    assignments = preserver.compute_assignments(records, wiring_sampler)
    preserver.apply_assignments(records, assignments)

    logger.info(
        f"Generated related records for {len(records)} schemas, "
        f"{len(preserver.relations)} relations, {len(assignments)} foreign-key stamps"
    )
    return {name: records[name] for name in schemas}
