"""Interactive entity selection for the mapping editor."""
from typing import List

import click
from colorama import Fore

from mapping_admin.editor.state import MappingEditor


class EntitySelector:
    """Prompt the operator for the entities to map."""

    def __init__(self, editor: MappingEditor):
        """Initialize selector."""
        self.editor = editor

    def prompt_selection(self) -> List[str]:
        """
        Prompt user to select entities interactively.

        Returns:
            List[str]: Names of selected entities
        """
        names = self.editor.state.entity_names
        if not names:
            click.echo(f"{Fore.YELLOW}No entities available")
            return []

        click.echo(f"\n{Fore.CYAN}Select entities to map:")
        click.echo(f"{Fore.CYAN}{'=' * 60}\n")

        for i, name in enumerate(names, 1):
            columns = len(self.editor.draft(name).fields)
            click.echo(f"{i:2d}. {name:30s} ({columns} fields)")

        click.echo(f"\n{Fore.YELLOW}Enter entity numbers (comma-separated), e.g. 1,3")
        click.echo(f"{Fore.YELLOW}Or type 'all' for all entities\n")

        while True:
            selection = click.prompt("Select entities", default="", type=str).strip()

            if not selection:
                click.echo(f"{Fore.YELLOW}No entities selected")
                return []

            if selection.lower() == "all":
                chosen = list(names)
            else:
                try:
                    indices = [int(x.strip()) - 1 for x in selection.split(",")]
                except ValueError:
                    click.echo(f"{Fore.RED}Invalid input. Please enter comma-separated numbers.")
                    continue

                invalid = [i + 1 for i in indices if i < 0 or i >= len(names)]
                if invalid:
                    click.echo(f"{Fore.RED}Invalid entity numbers: {invalid}")
                    continue

                chosen = [names[i] for i in indices]

            for name in chosen:
                if not self.editor.is_selected(name):
                    self.editor.toggle_entity(name)

            self._display_selection()
            return list(self.editor.state.selected)

    def _display_selection(self):
        """Display selected entities."""
        selected = self.editor.state.selected
        if not selected:
            return

        click.echo(f"\n{Fore.GREEN}✅ Selected {len(selected)} entit{'y' if len(selected) == 1 else 'ies'}:")
        for name in selected:
            click.echo(f"{Fore.GREEN}   • {name}")
        click.echo()
