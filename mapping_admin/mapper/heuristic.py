"""Heuristics for fields the extractor can resolve without a selector."""
from typing import Dict, Iterable, Optional

from mapping_admin.schema.models import FieldDraft, FieldRule, is_id_column


class AutoExtractionHeuristic:
    """Recognise Google Maps sources and their well-known place fields."""

    MAPS_URL_MARKERS = ("google.com/maps", "maps.google.com")

    PLACE_FIELDS = (
        "name",
        "address",
        "phone",
        "website",
        "rating",
        "reviews_count",
        "category",
        "hours",
        "description",
    )

    @staticmethod
    def _normalize(name: str) -> str:
        return (name or "").lower().replace("_", "")

    @classmethod
    def normalized_place_fields(cls) -> tuple:
        return tuple(cls._normalize(key) for key in cls.PLACE_FIELDS)

    @classmethod
    def is_google_maps_source(cls, url: Optional[str]) -> bool:
        """Case-insensitive check for a Google Maps URL."""
        url_lower = (url or "").lower()
        return any(marker in url_lower for marker in cls.MAPS_URL_MARKERS)

    @classmethod
    def matching_place_field(cls, attribute: str) -> Optional[str]:
        """
        Find the well-known place field an attribute aliases.

        Matching is loose: after lower-casing and dropping underscores,
        either name may contain the other (``business_name`` -> ``name``).

        Args:
            attribute: Entity attribute name

        Returns:
            str: The matched place field key, or None
        """
        normalized = cls._normalize(attribute)
        if not normalized:
            return None

        for key, known in zip(cls.PLACE_FIELDS, cls.normalized_place_fields()):
            if known in normalized or normalized in known:
                return key

        return None

    @classmethod
    def is_auto_extractable(cls, attribute: str, url: Optional[str]) -> bool:
        """Whether ``attribute`` needs no selector on the source at ``url``."""
        if not cls.is_google_maps_source(url):
            return False
        return cls.matching_place_field(attribute) is not None


is_google_maps_source = AutoExtractionHeuristic.is_google_maps_source
is_auto_extractable = AutoExtractionHeuristic.is_auto_extractable


def build_field_table(fields: Iterable[FieldDraft], url: Optional[str]) -> Dict[str, FieldRule]:
    """
    Collect the draft rows that qualify as field mappings.

    A row qualifies when it has a selector, or when the source is a
    Google Maps URL and the attribute is auto-extractable. The ``id``
    attribute never qualifies.

    Args:
        fields: Draft rows of one entity
        url: Source URL

    Returns:
        Dict[str, FieldRule]: {attribute: FieldRule}
    """
    table: Dict[str, FieldRule] = {}

    for row in fields:
        if is_id_column(row.attribute):
            continue

        selector = (row.selector or "").strip()
        if selector or is_auto_extractable(row.attribute, url):
            table[row.attribute] = FieldRule.create(selector, row.metadata)

    return table
