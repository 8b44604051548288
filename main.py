#!/usr/bin/env python3
"""Scrape mapping admin - Entry point."""
import logging
import sys

import click
from colorama import Fore, Style, init

from config import ScraperApiConfig, app_config
from mapping_admin import __version__
from mapping_admin.cli.interactive import InteractiveCLI
from mapping_admin.mapper.filters import ALL_SOURCES

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Scrape Mapping Admin{Fore.CYAN}                 ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Entity / Source Field Mappings{Fore.CYAN}       ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


def _finish(ok: bool):
    if not ok:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--base-url", help="Scraping backend base URL")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, base_url, verbose):
    """Configure entity/source field mappings for the scraping backend."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = app_config.scraper_api
    if base_url:
        config = ScraperApiConfig(
            base_url=base_url,
            timeout=config.timeout,
            preview_debounce=config.preview_debounce,
            housekeeping_columns=config.housekeeping_columns,
        )

    if ctx.obj is None:
        ctx.obj = InteractiveCLI(config)


@cli.command()
@click.pass_obj
def create(tool):
    """Create mappings for a source."""
    print_banner()
    _finish(tool.create_mapping())


@cli.command("list")
@click.option("--search", default="", help="Filter by mapping, entity or source name")
@click.option("--source", default=ALL_SOURCES, help="Only mappings of this source")
@click.pass_obj
def list_mappings(tool, search, source):
    """List mappings with their status."""
    _finish(tool.list_mappings(search=search, source=source))


@cli.command()
@click.argument("mapping_name")
@click.pass_obj
def show(tool, mapping_name):
    """Show one mapping."""
    _finish(tool.show_mapping(mapping_name))


@cli.command()
@click.argument("mapping_name")
@click.pass_obj
def toggle(tool, mapping_name):
    """Enable or disable a mapping."""
    _finish(tool.toggle_mapping(mapping_name))


@cli.command()
@click.argument("mapping_name")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def delete(tool, mapping_name, yes):
    """Delete a mapping."""
    _finish(tool.delete_mapping(mapping_name, assume_yes=yes))


@cli.command()
@click.argument("mapping_name")
@click.pass_obj
def edit(tool, mapping_name):
    """Edit a mapping."""
    print_banner()
    _finish(tool.edit_mapping(mapping_name))


@cli.command("fetch-html")
@click.argument("url")
@click.pass_obj
def fetch_html(tool, url):
    """Fetch a page's raw HTML through the backend."""
    _finish(tool.fetch_html(url))


if __name__ == "__main__":
    cli()
