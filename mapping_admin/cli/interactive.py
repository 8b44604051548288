"""Interactive CLI for the mapping admin tool."""
import asyncio
import json
import logging
from typing import Optional

import click
from colorama import Fore, Style

from config import ScraperApiConfig, app_config
from mapping_admin.api.catalog import Catalog
from mapping_admin.api.client import ScraperClient
from mapping_admin.api.gateway import MappingGateway
from mapping_admin.api.preview import PreviewOrchestrator, RawHtmlPreviewer
from mapping_admin.cli.entity_selector import EntitySelector
from mapping_admin.editor.edit_session import EditSession
from mapping_admin.editor.state import MappingEditor
from mapping_admin.errors import MappingAdminError
from mapping_admin.mapper.filters import ALL_SOURCES
from mapping_admin.mapper.heuristic import is_auto_extractable
from mapping_admin.mapper.status import MappingStatus, resolve
from mapping_admin.schema.models import ExtractKind, MappingRecord

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    MappingStatus.ACTIVE: Fore.GREEN,
    MappingStatus.DISABLED: Fore.RED,
    MappingStatus.BROKEN: Fore.YELLOW,
}

HTML_EXCERPT = 2000


class InteractiveCLI:
    """Interactive CLI interface."""

    def __init__(self, config: Optional[ScraperApiConfig] = None, client: Optional[ScraperClient] = None):
        """Initialize CLI."""
        self.config = config or app_config.scraper_api
        self.client = client or ScraperClient(self.config)
        self.catalog = Catalog(self.client)
        self.gateway = MappingGateway(self.client)
        self.orchestrator = PreviewOrchestrator(self.client)

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def error(self, err: Exception):
        click.echo(f"{Fore.RED}❌ {err}")

    def create_mapping(self) -> bool:
        """Compose and save mappings for one source."""
        self.print_header("New Entity Mapping")

        try:
            click.echo(f"{Fore.CYAN}Loading entities and sources from {self.config.base_url}...")
            self.catalog.refresh()
        except MappingAdminError as e:
            self.error(e)
            return False

        editor = MappingEditor(self.config.housekeeping_columns)
        editor.load(self.catalog.entities, self.catalog.sources)

        self._choose_source(editor)

        if not EntitySelector(editor).prompt_selection():
            click.echo(f"{Fore.YELLOW}Nothing to save.")
            return False

        for entity in list(editor.state.selected):
            self._edit_entity_draft(editor, entity)

            if click.confirm(f"Preview {entity} now?", default=False):
                self._preview(editor, entity)

        if not click.confirm("Save mappings?", default=True):
            click.echo(f"{Fore.YELLOW}Discarded.")
            return False

        try:
            message = editor.save(self.gateway)
        except MappingAdminError as e:
            click.echo(f"{Fore.RED}❌ Failed to save mappings: {e}")
            return False

        click.echo(f"{Fore.GREEN}✅ {message}")
        return True

    def _choose_source(self, editor: MappingEditor):
        sources = self.catalog.sources
        if sources:
            click.echo("Existing sources:")
            for i, source in enumerate(sources, 1):
                click.echo(f"{i:2d}. {source.name:25s} {Fore.WHITE}{source.url}")
            click.echo(" 0. Enter a new source\n")

            choice = click.prompt("Select source", type=click.IntRange(0, len(sources)), default=0)
            if choice:
                editor.select_source(sources[choice - 1])
                click.echo(f"{Fore.GREEN}Using {editor.state.source_name} ({editor.state.url})")
                return

        editor.set_source_name(click.prompt("Source name", type=str))
        editor.set_url(click.prompt("URL", type=str))

    def _edit_entity_draft(self, editor: MappingEditor, entity: str):
        self.print_header(f"Entity: {entity}")
        url = editor.state.url

        container = click.prompt("Container selector (optional)", default="", show_default=False)
        editor.set_container_selector(entity, container or None)

        for row in editor.draft(entity).fields:
            auto = is_auto_extractable(row.attribute, url)
            hint = " [auto]" if auto else ""
            selector = click.prompt(
                f"  {row.attribute}{hint} selector", default=row.selector, show_default=False
            )
            extract = click.prompt(
                f"  {row.attribute} extract",
                type=click.Choice(ExtractKind.choices()),
                default=row.metadata,
            )
            editor.set_field(entity, row.attribute, selector=selector, extract=extract)

        if not click.confirm(f"Enable {entity} mapping?", default=editor.draft(entity).enabled):
            editor.set_enabled(entity, False)

    def _preview(self, editor: MappingEditor, entity: str):
        try:
            result = editor.preview(self.orchestrator, entity)
        except MappingAdminError as e:
            self.error(e)
            return

        click.echo(f"{Fore.GREEN}Preview: {len(result.rows)} of {result.total_items} item(s)")
        for row in result.rows:
            click.echo(f"   {json.dumps(row, ensure_ascii=False)}")

    def _load_mappings(self) -> bool:
        try:
            self.gateway.refresh()
        except MappingAdminError as e:
            click.echo(f"{Fore.RED}Failed to fetch mappings: {e}")
            return False
        return True

    def list_mappings(self, search: str = "", source: str = ALL_SOURCES) -> bool:
        """List mappings with their derived status."""
        self.print_header("Mappings")
        if not self._load_mappings():
            return False

        stats = self.gateway.stats()
        click.echo(
            f"Total: {stats['total']}  "
            f"{Fore.GREEN}Active: {stats['Active']}  "
            f"{Fore.RED}Disabled: {stats['Disabled']}  "
            f"{Fore.YELLOW}Broken: {stats['Broken']}{Style.RESET_ALL}\n"
        )
        if self.gateway.skipped:
            click.echo(f"{Fore.YELLOW}⚠️  Unreadable mappings skipped: {', '.join(self.gateway.skipped)}\n")

        records = self.gateway.search(search, source)
        if not records:
            click.echo(f"{Fore.YELLOW}No mappings found")
            return True

        for record in records:
            status = resolve(record)
            click.echo(
                f"{STATUS_COLORS[status]}{status.value:9s}{Style.RESET_ALL} "
                f"{record.mapping_name:30s} {record.source_name or '-'} • {record.entity_name} "
                f"({len(record.field_mappings)} fields)"
            )

        click.echo(f"\nLast refreshed: {self.gateway.last_refreshed:%Y-%m-%d %H:%M:%S}")
        return True

    def _find(self, mapping_name: str) -> Optional[MappingRecord]:
        if not self._load_mappings():
            return None
        record = self.gateway.get(mapping_name)
        if record is None:
            click.echo(f"{Fore.RED}Mapping '{mapping_name}' not found")
        return record

    def show_mapping(self, mapping_name: str) -> bool:
        """Print one mapping with its field table."""
        record = self._find(mapping_name)
        if record is None:
            return False

        status = resolve(record)
        self.print_header(record.mapping_name)
        click.echo(f"Entity:     {record.entity_name}")
        click.echo(f"Source:     {record.source_name or '-'} (id {record.source_id})")
        click.echo(f"Container:  {record.container_selector or '-'}")
        click.echo(f"Status:     {STATUS_COLORS[status]}{status.value}{Style.RESET_ALL}")
        click.echo(f"Created:    {record.display_created_at()}\n")

        for name, rule in record.field_mappings.items():
            click.echo(f"   {name:25s} {rule.selector or '(auto)':35s} {rule.extract.value}")
        return True

    def toggle_mapping(self, mapping_name: str) -> bool:
        """Toggle a mapping's enabled flag."""
        try:
            enabled = self.gateway.toggle(mapping_name)
        except MappingAdminError as e:
            click.echo(f"{Fore.RED}Failed to toggle mapping status: {e}")
            return False

        state = f"{Fore.GREEN}enabled" if enabled else f"{Fore.RED}disabled"
        click.echo(f"Mapping '{mapping_name}' is now {state}")
        return True

    def delete_mapping(self, mapping_name: str, assume_yes: bool = False) -> bool:
        """Delete a mapping after confirmation."""
        def confirm(prompt: str) -> bool:
            return assume_yes or click.confirm(prompt, default=False)

        try:
            deleted = self.gateway.delete(mapping_name, confirm)
        except MappingAdminError as e:
            click.echo(f"{Fore.RED}Failed to delete mapping: {e}")
            return False

        if deleted:
            click.echo(f"{Fore.GREEN}✅ Deleted '{mapping_name}'")
        else:
            click.echo(f"{Fore.YELLOW}Cancelled")
        return True

    def edit_mapping(self, mapping_name: str) -> bool:
        """Edit a mapping's container selector, status and field rows."""
        record = self._find(mapping_name)
        if record is None:
            return False

        source_url = None
        try:
            source = self.catalog.refresh().get_source(record.source_id)
            source_url = source.url if source else None
        except MappingAdminError as e:
            logger.warning(f"Could not load sources: {e}")

        session = EditSession.open(record, source_url=source_url)

        while True:
            self._print_session(session)
            click.echo("1. Update field  2. Add field  3. Remove field  4. Container selector")
            click.echo("5. Toggle enabled  6. Rename  7. Save  8. Cancel\n")
            choice = click.prompt("Choose", type=click.IntRange(1, 8), default=7)

            if choice == 1 and session.rows:
                row = self._pick_row(session)
                session.update_row(
                    row.row_id,
                    field_name=click.prompt("Field name", default=row.field_name),
                    selector=click.prompt("Selector", default=row.selector, show_default=False),
                    extract=click.prompt(
                        "Extract", type=click.Choice(ExtractKind.choices()), default=row.extract
                    ),
                )
            elif choice == 2:
                session.add_row(
                    field_name=click.prompt("Field name", default="", show_default=False),
                    selector=click.prompt("Selector", default="", show_default=False),
                    extract=click.prompt(
                        "Extract", type=click.Choice(ExtractKind.choices()), default="text"
                    ),
                )
            elif choice == 3 and session.rows:
                session.remove_row(self._pick_row(session).row_id)
            elif choice == 4:
                session.container_selector = click.prompt(
                    "Container selector", default=session.container_selector, show_default=False
                )
            elif choice == 5:
                session.enabled = not session.enabled
            elif choice == 6:
                session.mapping_name = click.prompt("Mapping name", default=session.mapping_name)
            elif choice == 7:
                try:
                    updated = session.submit(self.gateway)
                except MappingAdminError as e:
                    click.echo(f"{Fore.RED}Failed to save mapping: {e}")
                    continue
                click.echo(f"{Fore.GREEN}✅ Saved '{updated.mapping_name}'")
                return True
            elif choice == 8:
                click.echo(f"{Fore.YELLOW}Cancelled")
                return True

    def _print_session(self, session: EditSession):
        self.print_header(f"Edit: {session.mapping_name}")
        click.echo(f"Container: {session.container_selector or '-'}")
        click.echo(f"Enabled:   {'yes' if session.enabled else 'no'}\n")
        for i, row in enumerate(session.rows, 1):
            click.echo(f"{i:2d}. {row.field_name or '?':25s} {row.selector or '-':35s} {row.extract}")
        click.echo()

    def _pick_row(self, session: EditSession):
        index = click.prompt("Field number", type=click.IntRange(1, len(session.rows)))
        return session.rows[index - 1]

    def fetch_html(self, url: str) -> bool:
        """Fetch a page's raw HTML through the backend."""
        previewer = RawHtmlPreviewer(self.client.fetch_url_content, delay=self.config.preview_debounce)

        async def run():
            previewer.url_changed(url)
            await previewer.wait_idle()

        asyncio.run(run())
        state = previewer.state

        if state.error:
            click.echo(f"{Fore.RED}❌ {state.error}")
            return False
        if state.content is None:
            click.echo(f"{Fore.YELLOW}Only http(s) URLs can be fetched")
            return False

        click.echo(state.content[:HTML_EXCERPT])
        if len(state.content) > HTML_EXCERPT:
            click.echo(f"{Fore.CYAN}... ({len(state.content)} characters total)")
        return True
