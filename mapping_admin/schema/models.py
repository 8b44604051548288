"""Models for entity schemas, sources and field mappings."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from mapping_admin.errors import UnknownExtractKindError


class ExtractKind(Enum):
    """What to pull out of a matched element."""

    TEXT = "text"
    HREF = "href"
    SRC = "src"
    HTML = "html"
    DATETIME = "datetime"
    VALUE = "value"
    TITLE = "title"
    ALT = "alt"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "ExtractKind":
        """Coerce a raw extract value; empty means ``text``."""
        if isinstance(value, ExtractKind):
            return value
        cleaned = (value or "").strip().lower()
        if not cleaned:
            return cls.TEXT
        try:
            return cls(cleaned)
        except ValueError:
            raise UnknownExtractKindError(value) from None

    @classmethod
    def choices(cls) -> List[str]:
        return [kind.value for kind in cls]


def is_id_column(name: str) -> bool:
    """The primary key column is never mapped."""
    return (name or "").strip().lower() == "id"


@dataclass
class EntitySchema:
    """Named record type supplied by the backend."""

    name: str
    columns: List[str] = field(default_factory=list)

    def mappable_columns(self, housekeeping=()) -> List[str]:
        """Columns offered for mapping, in schema order."""
        skip = {c.lower() for c in housekeeping}
        return [
            col for col in self.columns
            if not is_id_column(col) and col.lower() not in skip
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntitySchema":
        return cls(name=data["name"], columns=list(data.get("columns") or []))


@dataclass
class Source:
    """Scraping source (read-only reference)."""

    id: Any
    name: str
    url: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        return cls(id=data.get("id"), name=data.get("name") or "", url=data.get("url") or "")


@dataclass(frozen=True)
class FieldRule:
    """Selector plus extraction kind for one field."""

    selector: str
    extract: ExtractKind = ExtractKind.TEXT

    @classmethod
    def create(cls, selector: Optional[str], extract: Optional[str] = None) -> "FieldRule":
        return cls(selector=selector or "", extract=ExtractKind.normalize(extract))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldRule":
        return cls.create(data.get("selector"), data.get("extract"))

    def to_dict(self) -> Dict[str, str]:
        return {"selector": self.selector, "extract": self.extract.value}


@dataclass(frozen=True)
class FieldRow:
    """Editable representation of one field mapping entry.

    ``row_id`` only tracks the row inside an edit session and is never sent.
    """

    row_id: str
    field_name: str
    selector: str = ""
    extract: str = ExtractKind.TEXT.value


@dataclass(frozen=True)
class FieldDraft:
    """One attribute row of an entity being composed in the editor."""

    attribute: str
    selector: str = ""
    metadata: str = ExtractKind.TEXT.value

    def to_dict(self) -> Dict[str, str]:
        return {"attribute": self.attribute, "selector": self.selector, "metadata": self.metadata}


@dataclass(frozen=True)
class EntityMappingDraft:
    """Per-entity working copy held by the mapping editor."""

    entity_name: str
    enabled: bool = True
    container_selector: Optional[str] = None
    fields: tuple = ()

    @classmethod
    def seed(cls, schema: EntitySchema, housekeeping=()) -> "EntityMappingDraft":
        """Fresh draft with one empty row per mappable column."""
        return cls(
            entity_name=schema.name,
            fields=tuple(FieldDraft(attribute=col) for col in schema.mappable_columns(housekeeping)),
        )

    def get_field(self, attribute: str) -> Optional[FieldDraft]:
        for row in self.fields:
            if row.attribute == attribute:
                return row
        return None

    def with_field(self, attribute: str, **changes) -> "EntityMappingDraft":
        """Copy with a single field row changed; other rows are reused as-is."""
        if self.get_field(attribute) is None:
            raise KeyError(f"{self.entity_name} has no field {attribute!r}")
        fields = tuple(
            replace(row, **changes) if row.attribute == attribute else row
            for row in self.fields
        )
        return replace(self, fields=fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_name": self.entity_name,
            "enabled": self.enabled,
            "container_selector": self.container_selector,
            "fields": [row.to_dict() for row in self.fields],
        }


@dataclass
class MappingRecord:
    """Persisted binding of one entity to one source."""

    id: Any
    mapping_name: str
    entity_name: str
    source_id: Any = None
    source_name: Optional[str] = None
    container_selector: Optional[str] = None
    field_mappings: Dict[str, FieldRule] = field(default_factory=dict)
    enabled: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MappingRecord":
        rules = {
            name: FieldRule.from_dict(rule or {})
            for name, rule in (data.get("field_mappings") or {}).items()
            if not is_id_column(name)
        }
        enabled = data.get("enabled")
        return cls(
            id=data.get("id"),
            mapping_name=data.get("mapping_name") or "",
            entity_name=data.get("entity_name") or "",
            source_id=data.get("source_id"),
            source_name=data.get("source_name"),
            container_selector=data.get("container_selector"),
            field_mappings=rules,
            # Missing flag means enabled
            enabled=enabled is not False,
            created_at=parse_timestamp(data.get("created_at")),
        )

    def display_created_at(self) -> str:
        if self.created_at is None:
            return "-"
        return self.created_at.strftime("%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mapping_name": self.mapping_name,
            "entity_name": self.entity_name,
            "source_id": self.source_id,
            "source_name": self.source_name,
            "container_selector": self.container_selector,
            "field_mappings": {name: rule.to_dict() for name, rule in self.field_mappings.items()},
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from the backend, tolerating junk."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
