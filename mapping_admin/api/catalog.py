"""Cached entity schemas and sources."""
import logging
from typing import Any, List, Optional

from mapping_admin.api.client import ScraperClient
from mapping_admin.schema.models import EntitySchema, Source

logger = logging.getLogger(__name__)


class Catalog:
    """Entity schemas and sources, refreshed wholesale on demand."""

    def __init__(self, client: ScraperClient):
        self.client = client
        self.entities: List[EntitySchema] = []
        self.sources: List[Source] = []

    def refresh(self) -> "Catalog":
        """Reload both lists; on failure the previous lists are kept."""
        entities = [EntitySchema.from_dict(e) for e in self.client.list_entities()]
        sources = [Source.from_dict(s) for s in self.client.list_sources()]

        self.entities = entities
        self.sources = sources
        logger.info(f"Loaded {len(entities)} entity schemas and {len(sources)} sources")
        return self

    def get_entity(self, name: str) -> Optional[EntitySchema]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def get_source(self, source_id: Any) -> Optional[Source]:
        for source in self.sources:
            if source.id == source_id:
                return source
        return None

    def find_source(self, name: str) -> Optional[Source]:
        """Source by name, case-insensitive."""
        for source in self.sources:
            if source.name.lower() == (name or "").lower():
                return source
        return None
