"""
Backend access: HTTP client, entity/source catalog, mapping store
gateway and extraction previews.
"""

from .client import ScraperClient
from .catalog import Catalog
from .gateway import MappingGateway
from .preview import PreviewOrchestrator, PreviewResult, RawHtmlPreviewer

__all__ = [
    "ScraperClient",
    "Catalog",
    "MappingGateway",
    "PreviewOrchestrator",
    "PreviewResult",
    "RawHtmlPreviewer",
]
