"""Configuration client for web-scraping entity/source field mappings."""

__version__ = "0.1.0"
