"""Application configuration."""
import os
from dataclasses import dataclass, field
from typing import Tuple


DEFAULT_HOUSEKEEPING_COLUMNS = ("modified_at", "source_url")


def _split_columns(raw: str) -> Tuple[str, ...]:
    return tuple(c.strip() for c in raw.split(",") if c.strip())


@dataclass
class ScraperApiConfig:
    """Scraping backend API configuration."""

    base_url: str = "http://127.0.0.1:8000"
    timeout: int = 60
    preview_debounce: float = 0.5
    # Schema columns never offered for mapping (besides ``id``)
    housekeeping_columns: Tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_HOUSEKEEPING_COLUMNS
    )

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ScraperApiConfig":
        """Load config from environment variables."""
        columns = os.getenv("SCRAPER_HOUSEKEEPING_COLUMNS")
        return cls(
            base_url=os.getenv("SCRAPER_API_URL", "http://127.0.0.1:8000"),
            timeout=int(os.getenv("SCRAPER_API_TIMEOUT", "60")),
            preview_debounce=float(os.getenv("SCRAPER_PREVIEW_DEBOUNCE", "0.5")),
            housekeeping_columns=(
                _split_columns(columns) if columns is not None else DEFAULT_HOUSEKEEPING_COLUMNS
            ),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    scraper_api: ScraperApiConfig = None

    def __post_init__(self):
        """Fill defaults."""
        if self.scraper_api is None:
            self.scraper_api = ScraperApiConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(scraper_api=ScraperApiConfig.from_env())


# Global instance
app_config = AppConfig()
