"""
Field mapping model.

Entity schemas, sources, field rules and mapping records, plus the
conversions between a stored field table and editable rows.
"""

from .models import (
    EntityMappingDraft,
    EntitySchema,
    ExtractKind,
    FieldDraft,
    FieldRow,
    FieldRule,
    MappingRecord,
    Source,
)
from .conversion import rows_to_table, table_to_rows

__all__ = [
    "EntityMappingDraft",
    "EntitySchema",
    "ExtractKind",
    "FieldDraft",
    "FieldRow",
    "FieldRule",
    "MappingRecord",
    "Source",
    "rows_to_table",
    "table_to_rows",
]
