"""Mapping store gateway: list, save, edit, delete and toggle."""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from mapping_admin.api.client import ScraperClient
from mapping_admin.errors import NetworkError, ValidationError
from mapping_admin.mapper.filters import ALL_SOURCES, filter_mappings, mappings_for_source
from mapping_admin.mapper.status import status_counts
from mapping_admin.schema.conversion import rows_to_table
from mapping_admin.schema.models import FieldRow, MappingRecord

logger = logging.getLogger(__name__)


def delete_prompt(mapping_name: str) -> str:
    return f"Delete mapping '{mapping_name}'? This cannot be undone."


class MappingGateway:
    """
    Keeps an in-memory mapping list consistent with the mapping store.

    Local state changes only after the store confirms a mutation; a
    failed call raises and leaves ``mappings`` as it was.
    """

    def __init__(self, client: ScraperClient):
        """Initialize gateway."""
        self.client = client
        self.mappings: List[MappingRecord] = []
        self.skipped: List[str] = []
        self.last_refreshed: Optional[datetime] = None

    @property
    def loaded(self) -> bool:
        return self.last_refreshed is not None

    def refresh(self) -> List[MappingRecord]:
        """
        Load the full mapping list.

        A record that cannot be parsed is left out and its name kept in
        ``skipped``; the rest of the list still loads.
        """
        records = []
        skipped = []
        for data in self.client.list_mappings():
            try:
                records.append(MappingRecord.from_dict(data))
            except ValidationError as e:
                name = data.get("mapping_name") or f"id {data.get('id')}"
                logger.warning(f"Skipping mapping {name}: {e}")
                skipped.append(name)

        self.mappings = records
        self.skipped = skipped
        self.last_refreshed = datetime.now()
        logger.info(f"Loaded {len(records)} mappings")
        return records

    def get(self, mapping_name: str) -> Optional[MappingRecord]:
        for record in self.mappings:
            if record.mapping_name == mapping_name:
                return record
        return None

    def _require(self, mapping_name: str) -> MappingRecord:
        record = self.get(mapping_name)
        if record is None:
            raise ValidationError(f"Mapping '{mapping_name}' not found")
        return record

    def _replace(self, mapping_name: str, record: MappingRecord) -> None:
        self.mappings = [record if m.mapping_name == mapping_name else m for m in self.mappings]

    def search(self, search: str = "", source: str = ALL_SOURCES) -> List[MappingRecord]:
        return filter_mappings(self.mappings, search, source)

    def for_source(self, source_id: Any) -> List[MappingRecord]:
        return mappings_for_source(self.mappings, source_id)

    def stats(self) -> Dict[str, int]:
        return status_counts(self.mappings)

    def save(self, source: str, url: str, entity_mappings: Iterable[Dict[str, Any]]) -> str:
        """
        Create one mapping per entity entry.

        Args:
            source: Source name
            url: Source URL
            entity_mappings: Entries of {entity_name, container_selector,
                field_mappings, enabled}

        Returns:
            str: The backend's confirmation message

        Raises:
            ValidationError: Source or URL missing
            NetworkError: The store rejected the save
        """
        if not (source or "").strip() or not (url or "").strip():
            raise ValidationError("Source and URL are required")

        payload = {
            "source": source.strip(),
            "url": url.strip(),
            "entity_mappings": list(entity_mappings),
        }
        result = self.client.save_entity_mappings(payload)
        logger.info(f"Saved {len(payload['entity_mappings'])} mapping(s) for {payload['source']}")

        # Names and ids are assigned by the store
        if self.loaded:
            try:
                self.refresh()
            except NetworkError as e:
                logger.warning(f"Saved, but reloading mappings failed: {e}")

        return result.get("message") or "Mappings saved"

    def edit(
        self,
        original_name: str,
        rows: Iterable[FieldRow],
        container_selector: Optional[str],
        enabled: bool,
        mapping_name: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> MappingRecord:
        """
        Replace a mapping's mutable fields.

        The rows are converted to a field table before anything is sent;
        conversion failures block the request.

        Args:
            original_name: Current name of the mapping (addresses the request)
            rows: Edited field rows
            container_selector: New container selector (blank clears it)
            enabled: New enabled flag
            mapping_name: New name, if renaming
            source_url: Source URL, allows selector-less auto-extracted rows

        Returns:
            MappingRecord: The updated local record
        """
        record = self._require(original_name)
        field_mappings = rows_to_table(rows, source_url=source_url)
        new_name = (mapping_name or original_name).strip()
        if not new_name:
            raise ValidationError("Mapping name is required")

        container = (container_selector or "").strip() or None
        payload = {
            "mapping_name": new_name,
            "container_selector": container,
            "field_mappings": {name: rule.to_dict() for name, rule in field_mappings.items()},
            "source_id": record.source_id,
            "enabled": enabled,
        }
        result = self.client.edit_mapping(original_name, payload)

        if isinstance(result.get("mapping"), dict):
            updated = MappingRecord.from_dict(result["mapping"])
        else:
            updated = replace(
                record,
                mapping_name=new_name,
                container_selector=container,
                field_mappings=field_mappings,
                enabled=enabled,
            )

        self._replace(original_name, updated)
        logger.info(f"Updated mapping {original_name}")
        return updated

    def delete(self, mapping_name: str, confirm: Callable[[str], bool]) -> bool:
        """
        Delete a mapping once the operator confirms.

        Args:
            mapping_name: Mapping to delete
            confirm: Asked with a prompt naming the mapping

        Returns:
            bool: False if the operator declined (nothing was sent)
        """
        if not confirm(delete_prompt(mapping_name)):
            return False

        self.client.delete_mapping(mapping_name)
        self.mappings = [m for m in self.mappings if m.mapping_name != mapping_name]
        logger.info(f"Deleted mapping {mapping_name}")
        return True

    def toggle(self, mapping_name: str) -> bool:
        """Flip a mapping's enabled flag and adopt the store's value."""
        enabled = self.client.toggle_mapping_status(mapping_name)

        record = self.get(mapping_name)
        if record is not None:
            self._replace(mapping_name, replace(record, enabled=enabled))

        logger.info(f"Mapping {mapping_name} is now {'enabled' if enabled else 'disabled'}")
        return enabled
