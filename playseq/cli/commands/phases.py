"""playseq phases command."""

import click
from rich.console import Console
from rich.table import Table

from playseq.cli.options import config_from_options, run_config_options, to_click_exception
from playseq.core.discovery import discover_phases, parse_phase_order, validate_phase_order
from playseq.core.exceptions import PhaseMismatchError, PlayseqError

console = Console()


@click.command()
@run_config_options
def phases_command(**params) -> None:
    """Show phase directories and check them against the execution order.

    Nothing is executed. The command fails when the execution order does
    not pass validation.

    \b
    Examples:
        playseq phases -d playbooks -o "setup, run"
        playseq phases -d playbooks -o "run" --policy subset
    """
    try:
        config = config_from_options(params)
        phase_order = parse_phase_order(config.execution_order)
        discovered = discover_phases(config.get_playbook_dir(), config.exclude_dirs)
    except PlayseqError as e:
        console.print(f"[red]Failed to list phases:[/red] {e}")
        raise to_click_exception(e)

    table = Table(title=f"Phases in {config.get_playbook_dir()}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Phase", style="cyan")
    table.add_column("Directory")

    for number, phase in enumerate(phase_order, start=1):
        found = "[green]found[/green]" if phase in discovered else "[red]missing[/red]"
        table.add_row(str(number), phase, found)
    for name in sorted(discovered - set(phase_order)):
        table.add_row("-", name, "[yellow]not in execution order[/yellow]")

    console.print(table)
    console.print(f"[dim]Policy:[/dim] {config.validation_policy.value}")

    try:
        validate_phase_order(phase_order, discovered, config.validation_policy)
    except PhaseMismatchError as e:
        console.print(f"[red]✗[/red] {e}")
        raise to_click_exception(e)

    console.print("[green]✓[/green] Execution order is valid")
