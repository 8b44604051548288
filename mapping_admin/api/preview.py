"""
Extraction previews.

- PreviewOrchestrator: validates an entity draft and asks the backend for
  a sample extraction.
- RawHtmlPreviewer: debounced raw page fetch that only ever shows the
  response to the most recent URL.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from mapping_admin.api.client import ScraperClient
from mapping_admin.errors import MappingAdminError, ValidationError
from mapping_admin.mapper.heuristic import build_field_table
from mapping_admin.schema.models import EntityMappingDraft

logger = logging.getLogger(__name__)


@dataclass
class PreviewResult:
    """Sample rows returned by the preview endpoint."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_items: int = 0
    message: str = ""


class PreviewOrchestrator:
    """Validates a draft and runs it against the preview endpoint."""

    def __init__(self, client: ScraperClient):
        self.client = client

    def build_request(self, draft: EntityMappingDraft, source_name: str, url: str) -> Dict[str, Any]:
        """
        Build the preview request body.

        Raises:
            ValidationError: Source/URL missing or no usable field mapping
        """
        if not (source_name or "").strip() or not (url or "").strip():
            raise ValidationError("source/url required")

        table = build_field_table(draft.fields, url)
        if not table:
            raise ValidationError("at least one field mapping required")

        return {
            "url": url.strip(),
            "entity_name": draft.entity_name,
            "container_selector": (draft.container_selector or "").strip() or None,
            "field_mappings": {name: rule.to_dict() for name, rule in table.items()},
        }

    def preview(self, draft: EntityMappingDraft, source_name: str, url: str) -> PreviewResult:
        """Run a sample extraction; backend failures propagate as NetworkError."""
        payload = self.build_request(draft, source_name, url)
        result = self.client.preview_mapping(payload)

        rows = result.get("data") or []
        total = result.get("total_items")
        return PreviewResult(
            rows=rows,
            total_items=total if isinstance(total, int) else len(rows),
            message=result.get("message") or "",
        )


def is_http_url(url: Optional[str]) -> bool:
    return (url or "").strip().lower().startswith(("http://", "https://"))


@dataclass
class RawPreviewState:
    """What the raw HTML pane shows."""

    url: str = ""
    content: Optional[str] = None
    error: Optional[str] = None
    loading: bool = False


class RawHtmlPreviewer:
    """
    Debounced raw page fetch with last-request-wins semantics.

    Every URL change restarts the debounce timer and bumps a generation
    counter. A response is applied only if its generation is still the
    latest, so a slow earlier request can never overwrite a newer one.
    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        fetch: Callable[[str], Dict[str, Any]],
        delay: float = 0.5,
        on_update: Optional[Callable[[RawPreviewState], None]] = None,
    ):
        """
        Args:
            fetch: Blocking fetch returning {success, content, error?}
                (e.g. ScraperClient.fetch_url_content)
            delay: Seconds of inactivity before a request is issued
            on_update: Called whenever the state changes
        """
        self.fetch = fetch
        self.delay = delay
        self.on_update = on_update
        self.state = RawPreviewState()
        self.generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    def _publish(self, **changes) -> None:
        for key, value in changes.items():
            setattr(self.state, key, value)
        if self.on_update is not None:
            self.on_update(self.state)

    def url_changed(self, url: str) -> None:
        """Restart the debounce for ``url``; non-http(s) URLs issue nothing."""
        self.generation += 1
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

        if not is_http_url(url):
            self._publish(url=url, content=None, error=None, loading=False)
            return

        generation = self.generation
        self._timer = asyncio.get_running_loop().create_task(self._debounced(url, generation))
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._tasks.discard)

    async def _debounced(self, url: str, generation: int) -> None:
        await asyncio.sleep(self.delay)
        if generation != self.generation:
            return

        # Past this point the request is in flight and is no longer cancelled
        # by URL changes; its result is dropped instead.
        self._timer = None
        request = asyncio.get_running_loop().create_task(self._request(url, generation))
        self._tasks.add(request)
        request.add_done_callback(self._tasks.discard)

    async def _request(self, url: str, generation: int) -> None:
        self._publish(url=url, loading=True)
        logger.debug(f"Fetching raw HTML for {url} (generation {generation})")

        try:
            result = await asyncio.to_thread(self.fetch, url)
        except MappingAdminError as e:
            if generation == self.generation:
                self._publish(content=None, error=e.message, loading=False)
            else:
                logger.debug(f"Dropped stale failure for {url}")
            return

        if generation != self.generation:
            logger.debug(f"Dropped stale response for {url}")
            return

        self._publish(content=result.get("content") or "", error=None, loading=False)

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or request is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
