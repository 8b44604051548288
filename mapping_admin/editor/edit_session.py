"""Working copy of an existing mapping while it is being edited."""
from dataclasses import dataclass, field, replace
from typing import List, Optional

from mapping_admin.schema.conversion import new_row_id, table_to_rows
from mapping_admin.schema.models import ExtractKind, FieldRow, MappingRecord


@dataclass
class EditSession:
    """Rows and mutable fields of one mapping, keyed by its original name."""

    original_name: str
    mapping_name: str
    container_selector: str = ""
    enabled: bool = True
    rows: List[FieldRow] = field(default_factory=list)
    source_url: Optional[str] = None

    @classmethod
    def open(cls, record: MappingRecord, source_url: Optional[str] = None) -> "EditSession":
        return cls(
            original_name=record.mapping_name,
            mapping_name=record.mapping_name,
            container_selector=record.container_selector or "",
            enabled=record.enabled,
            rows=table_to_rows(record.field_mappings),
            source_url=source_url,
        )

    def add_row(self, field_name: str = "", selector: str = "",
                extract: str = ExtractKind.TEXT.value) -> FieldRow:
        row = FieldRow(row_id=new_row_id(), field_name=field_name, selector=selector, extract=extract)
        self.rows = self.rows + [row]
        return row

    def remove_row(self, row_id: str) -> None:
        self.rows = [row for row in self.rows if row.row_id != row_id]

    def update_row(self, row_id: str, **changes) -> FieldRow:
        """Change one row's field_name, selector or extract."""
        unknown = set(changes) - {"field_name", "selector", "extract"}
        if unknown:
            raise TypeError(f"Cannot update row attribute(s): {', '.join(sorted(unknown))}")

        updated = None
        rows = []
        for row in self.rows:
            if row.row_id == row_id:
                updated = replace(row, **changes)
                row = updated
            rows.append(row)

        if updated is None:
            raise KeyError(f"No row {row_id!r}")

        self.rows = rows
        return updated

    def submit(self, gateway) -> MappingRecord:
        """Send the edit through ``gateway`` (a MappingGateway)."""
        return gateway.edit(
            self.original_name,
            self.rows,
            container_selector=self.container_selector,
            enabled=self.enabled,
            mapping_name=self.mapping_name,
            source_url=self.source_url,
        )
