"""Scraping backend API client."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from config import ScraperApiConfig
from mapping_admin.errors import NetworkError

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Request failed"


def failure_message(payload: Any, fallback: str = GENERIC_FAILURE) -> str:
    """Best human-readable failure message from a response payload."""
    if isinstance(payload, dict):
        for key in ("detail", "message", "error"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return fallback


class ScraperClient:
    """Client for the scraping backend's mapping, source and preview endpoints."""

    def __init__(self, config: ScraperApiConfig, session: Optional[requests.Session] = None):
        """Initialize client."""
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a request and decode its JSON body.

        Args:
            method: HTTP method
            path: Path below the base URL
            json: Request body

        Returns:
            dict: Decoded response body

        Raises:
            NetworkError: Transport failure, error status, or undecodable body
        """
        url = self._url(path)
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(method, url, json=json, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"{GENERIC_FAILURE}: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = failure_message(payload, f"{GENERIC_FAILURE} (HTTP {response.status_code})")
            logger.warning(f"{method} {url} returned {response.status_code}: {message}")
            raise NetworkError(message, status_code=response.status_code)

        if not isinstance(payload, dict):
            raise NetworkError(f"Invalid JSON response from {path}", status_code=response.status_code)

        return payload

    @staticmethod
    def _check_success(payload: Dict[str, Any], fallback: str) -> Dict[str, Any]:
        if payload.get("success") is False:
            raise NetworkError(failure_message(payload, fallback))
        return payload

    @staticmethod
    def _segment(name: str) -> str:
        return quote(name, safe="")

    def list_entities(self) -> List[Dict[str, Any]]:
        """Get entity schemas."""
        return self._request("GET", "/entity/entities").get("entities") or []

    def list_sources(self) -> List[Dict[str, Any]]:
        """Get configured sources."""
        return self._request("GET", "/source/sources").get("sources") or []

    def list_mappings(self) -> List[Dict[str, Any]]:
        """Get every mapping record."""
        return self._request("GET", "/mapping/mappings").get("mappings") or []

    def save_entity_mappings(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create mappings for a source."""
        result = self._request("POST", "/mapping/save-entity-mapping", json=payload)
        if not result.get("success"):
            raise NetworkError(failure_message(result, "Save failed"))
        return result

    def edit_mapping(self, mapping_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Replace one mapping's mutable fields."""
        path = f"/mapping/edit-mapping/{self._segment(mapping_name)}"
        return self._check_success(self._request("PUT", path, json=payload), "Edit failed")

    def delete_mapping(self, mapping_name: str) -> Dict[str, Any]:
        """Delete one mapping."""
        path = f"/mapping/delete-mapping/{self._segment(mapping_name)}"
        return self._check_success(self._request("DELETE", path), "Delete failed")

    def toggle_mapping_status(self, mapping_name: str) -> bool:
        """Flip a mapping's enabled flag; returns the persisted value."""
        path = f"/mapping/toggle-mapping-status/{self._segment(mapping_name)}"
        result = self._check_success(self._request("PUT", path), "Toggle failed")
        enabled = result.get("enabled")
        if not isinstance(enabled, bool):
            raise NetworkError("Toggle response did not include the enabled status")
        return enabled

    def preview_mapping(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run a sample extraction."""
        result = self._request("POST", "/task/preview-mapping", json=payload)
        if not result.get("success"):
            raise NetworkError(failure_message(result, "Preview failed"))
        return result

    def fetch_url_content(self, url: str) -> Dict[str, Any]:
        """Fetch raw page HTML through the backend."""
        result = self._request("POST", "/utils/fetch-url-content", json={"url": url})
        if not result.get("success"):
            raise NetworkError(failure_message(result, "Fetch failed"))
        return result
