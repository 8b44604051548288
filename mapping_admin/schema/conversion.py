"""Conversions between the stored field table and editable rows."""
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from mapping_admin.errors import DuplicateFieldError, IncompleteFieldError
from mapping_admin.mapper import heuristic
from mapping_admin.schema.models import ExtractKind, FieldRow, FieldRule, is_id_column


def new_row_id() -> str:
    """Transient identity for a row inside an edit session."""
    return uuid.uuid4().hex[:9]


def table_to_rows(
    table: Dict[str, FieldRule],
    id_factory: Callable[[], str] = new_row_id,
) -> List[FieldRow]:
    """
    Expand a field table into editable rows.

    Rows follow the table's insertion order.

    Args:
        table: {field_name: FieldRule}
        id_factory: Produces the transient row identity

    Returns:
        List[FieldRow]: One row per table entry
    """
    return [
        FieldRow(
            row_id=id_factory(),
            field_name=name,
            selector=rule.selector or "",
            extract=ExtractKind.normalize(rule.extract).value,
        )
        for name, rule in table.items()
    ]


def rows_to_table(
    rows: Iterable[FieldRow],
    source_url: Optional[str] = None,
) -> Dict[str, FieldRule]:
    """
    Collapse editable rows back into a field table.

    Field names and selectors are stored trimmed, so rows with
    surrounding whitespace do not come back unchanged from
    ``table_to_rows``. Rows naming the ``id`` column are dropped. When
    ``source_url`` is a Google Maps URL, rows that are auto-extractable
    may leave the selector empty.

    Args:
        rows: Edited rows
        source_url: URL of the mapping's source, if known

    Returns:
        Dict[str, FieldRule]: {field_name: FieldRule}

    Raises:
        IncompleteFieldError: A row lacks a field name or selector
        DuplicateFieldError: Two rows share a field name
        UnknownExtractKindError: A row has an unsupported extract kind
    """
    table: Dict[str, FieldRule] = {}

    for index, row in enumerate(rows):
        name = (row.field_name or "").strip()
        selector = (row.selector or "").strip()

        if not name:
            raise IncompleteFieldError(index)
        if name in table:
            raise DuplicateFieldError(name)
        if is_id_column(name):
            continue
        if not selector and not (source_url and heuristic.is_auto_extractable(name, source_url)):
            raise IncompleteFieldError(index)

        table[name] = FieldRule.create(selector, row.extract)

    return table
