"""DataFrame views over generated records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import pandas as pd

from schema_synth.generator.record_generator import resolve_fields


def to_dataframe(records: list[dict[str, Any]], schema: Any = None) -> pd.DataFrame:
    """Build a DataFrame from records.

    With a schema, columns follow the schema's field order and any extra
    keys (identifiers, foreign keys) are appended in first-seen order.
    """
    columns: list[str] = list(resolve_fields(schema)) if schema is not None else []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return pd.DataFrame.from_records(records, columns=columns)


def to_dataframes(
    related: Mapping[str, list[dict[str, Any]]],
    schemas: Optional[Mapping[str, Any]] = None,
) -> dict[str, pd.DataFrame]:
    """Build one DataFrame per named record set."""
    schemas = schemas or {}
    return {name: to_dataframe(records, schemas.get(name)) for name, records in related.items()}
