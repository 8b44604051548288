"""Mapping editor: composes new mappings for one source."""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import DEFAULT_HOUSEKEEPING_COLUMNS
from mapping_admin.errors import ValidationError
from mapping_admin.schema.models import (
    EntityMappingDraft,
    EntitySchema,
    ExtractKind,
    FieldRule,
    Source,
    is_id_column,
)

logger = logging.getLogger(__name__)


class EditorPhase(Enum):
    IDLE = "idle"
    LOADED = "loaded"


@dataclass
class EditorState:
    """Everything the editor knows; mutated only through MappingEditor."""

    phase: EditorPhase = EditorPhase.IDLE
    source_name: str = ""
    url: str = ""
    entity_names: List[str] = field(default_factory=list)
    drafts: Dict[str, EntityMappingDraft] = field(default_factory=dict)
    selected: List[str] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "source_name": self.source_name,
            "url": self.url,
            "entity_names": list(self.entity_names),
            "selected": list(self.selected),
            "drafts": {name: draft.to_dict() for name, draft in self.drafts.items()},
        }


class MappingEditor:
    """
    Builds entity mappings for a source before they are saved.

    Usage:
    ```python
    editor = MappingEditor()
    editor.load(catalog.entities, catalog.sources)
    editor.select_source(catalog.sources[0])
    editor.toggle_entity("company")
    editor.set_field("company", "name", selector="h3.title")
    editor.save(gateway)
    ```
    """

    def __init__(
        self,
        housekeeping_columns: Iterable[str] = DEFAULT_HOUSEKEEPING_COLUMNS,
        on_url_change: Optional[Callable[[str], None]] = None,
    ):
        self.housekeeping_columns = tuple(housekeeping_columns)
        self.on_url_change = on_url_change
        self.state = EditorState()

    def load(self, schemas: Iterable[EntitySchema], sources: Iterable[Source] = ()) -> None:
        """
        Seed one draft per entity schema.

        Reloading reseeds every draft; selections survive for entities
        that still exist.
        """
        schemas = list(schemas)
        names = [schema.name for schema in schemas]

        self.state.drafts = {
            schema.name: EntityMappingDraft.seed(schema, self.housekeeping_columns)
            for schema in schemas
        }
        self.state.entity_names = names
        self.state.selected = [name for name in self.state.selected if name in names]
        self.state.sources = list(sources)
        self.state.phase = EditorPhase.LOADED
        logger.debug(f"Editor loaded {len(names)} entities")

    def _draft(self, entity: str) -> EntityMappingDraft:
        if self.state.phase is not EditorPhase.LOADED:
            raise ValidationError("Entities have not been loaded yet")
        try:
            return self.state.drafts[entity]
        except KeyError:
            raise ValidationError(f"Unknown entity: {entity}") from None

    def draft(self, entity: str) -> EntityMappingDraft:
        return self._draft(entity)

    def is_selected(self, entity: str) -> bool:
        return entity in self.state.selected

    def toggle_entity(self, entity: str) -> bool:
        """Add or remove an entity from the selection; returns new membership."""
        self._draft(entity)
        if entity in self.state.selected:
            self.state.selected = [e for e in self.state.selected if e != entity]
            return False
        self.state.selected = self.state.selected + [entity]
        return True

    def set_field(self, entity: str, attribute: str,
                  selector: Optional[str] = None, extract: Optional[str] = None) -> None:
        """Change one (entity, attribute) row; every other row is untouched."""
        draft = self._draft(entity)
        if draft.get_field(attribute) is None:
            raise ValidationError(f"{entity} has no field {attribute}")

        changes = {}
        if selector is not None:
            changes["selector"] = selector
        if extract is not None:
            changes["metadata"] = ExtractKind.normalize(extract).value
        if changes:
            self.state.drafts = {**self.state.drafts, entity: draft.with_field(attribute, **changes)}

    def set_container_selector(self, entity: str, selector: Optional[str]) -> None:
        draft = self._draft(entity)
        self.state.drafts = {**self.state.drafts, entity: replace(draft, container_selector=selector)}

    def toggle_enabled(self, entity: str) -> bool:
        draft = self._draft(entity)
        return self.set_enabled(entity, not draft.enabled)

    def set_enabled(self, entity: str, enabled: bool) -> bool:
        draft = self._draft(entity)
        self.state.drafts = {**self.state.drafts, entity: replace(draft, enabled=enabled)}
        return enabled

    def review(self, entity: str) -> Dict[str, Any]:
        return self._draft(entity).to_dict()

    def select_source(self, source: Source) -> None:
        """Prefill source name and URL from an existing source."""
        self.state.source_name = source.name
        self.set_url(source.url)

    def set_source_name(self, name: str) -> None:
        self.state.source_name = name

    def set_url(self, url: str) -> None:
        changed = url != self.state.url
        self.state.url = url
        if changed and self.on_url_change is not None:
            self.on_url_change(url)

    def require_source(self) -> None:
        if not self.state.source_name.strip() or not self.state.url.strip():
            raise ValidationError("Source and URL are required")

    def entity_mapping(self, entity: str) -> Dict[str, Any]:
        """
        Request-shaped entry for one entity draft.

        Every non-``id`` attribute is written with its extract kind,
        including rows whose selector is still empty.
        """
        draft = self._draft(entity)
        field_mappings = {
            row.attribute: FieldRule.create((row.selector or "").strip(), row.metadata).to_dict()
            for row in draft.fields
            if not is_id_column(row.attribute)
        }
        return {
            "entity_name": draft.entity_name,
            "container_selector": (draft.container_selector or "").strip() or None,
            "field_mappings": field_mappings,
            "enabled": draft.enabled,
        }

    def build_entity_mappings(self) -> List[Dict[str, Any]]:
        """
        Entries for every selected entity, in selection order.

        An entity without mappable columns still contributes an entry
        with empty field mappings.

        Raises:
            ValidationError: Source/URL missing or nothing selected
        """
        self.require_source()
        if not self.state.selected:
            raise ValidationError("Select at least one entity")
        return [self.entity_mapping(entity) for entity in self.state.selected]

    def save(self, gateway) -> str:
        """Persist the selected drafts through ``gateway`` (a MappingGateway)."""
        entries = self.build_entity_mappings()
        return gateway.save(self.state.source_name, self.state.url, entries)

    def preview(self, orchestrator, entity: str):
        """Sample extraction for one entity via ``orchestrator``."""
        return orchestrator.preview(self._draft(entity), self.state.source_name, self.state.url)
