"""Derived lifecycle status of mapping records."""
from enum import Enum
from typing import Dict, Iterable

from mapping_admin.schema.models import MappingRecord


class MappingStatus(Enum):
    """Display status; never persisted."""

    ACTIVE = "Active"
    DISABLED = "Disabled"
    BROKEN = "Broken"


def resolve(record: MappingRecord) -> MappingStatus:
    """
    Classify a mapping record.

    Disabled wins over broken: a disabled mapping is never checked
    for completeness.
    """
    if record.enabled is False:
        return MappingStatus.DISABLED
    if not record.field_mappings:
        return MappingStatus.BROKEN
    return MappingStatus.ACTIVE


def status_counts(records: Iterable[MappingRecord]) -> Dict[str, int]:
    """Count records per status, plus the total."""
    counts = {status.value: 0 for status in MappingStatus}
    total = 0
    for record in records:
        counts[resolve(record).value] += 1
        total += 1
    counts["total"] = total
    return counts
