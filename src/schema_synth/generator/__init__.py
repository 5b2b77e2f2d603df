"""Generator — synthetic values, records and related record sets."""

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
