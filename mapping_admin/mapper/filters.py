"""Client-side search and filtering over the full mapping list."""
from typing import Any, Iterable, List

from mapping_admin.schema.models import MappingRecord

ALL_SOURCES = "all"
UNKNOWN_SOURCE = "unknown"


def source_label(record: MappingRecord) -> str:
    return record.source_name or UNKNOWN_SOURCE


def source_options(records: Iterable[MappingRecord]) -> List[str]:
    """``all`` followed by each distinct source label, first-seen order."""
    options = [ALL_SOURCES]
    for record in records:
        label = source_label(record)
        if label not in options:
            options.append(label)
    return options


def matches_search(record: MappingRecord, search: str) -> bool:
    """Case-insensitive substring match on mapping, entity or source name."""
    if not search:
        return True
    needle = search.lower()
    return any(
        needle in value.lower()
        for value in (record.mapping_name, record.entity_name, record.source_name)
        if value
    )


def filter_mappings(
    records: Iterable[MappingRecord],
    search: str = "",
    source: str = ALL_SOURCES,
) -> List[MappingRecord]:
    """
    Apply the search box and the source dropdown together.

    Args:
        records: Full mapping list
        search: Free-text search (empty matches everything)
        source: A value from ``source_options``

    Returns:
        List[MappingRecord]: Matching records, original order
    """
    return [
        record for record in records
        if matches_search(record, search)
        and (source == ALL_SOURCES or source_label(record) == source)
    ]


def mappings_for_source(records: Iterable[MappingRecord], source_id: Any) -> List[MappingRecord]:
    """Mappings bound to one source."""
    return [record for record in records if record.source_id == source_id]
