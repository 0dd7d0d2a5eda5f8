"""playseq plan command."""

import click
from rich.console import Console

from playseq.cli.options import config_from_options, run_config_options, to_click_exception
from playseq.core.command_builder import mask_secrets
from playseq.core.exceptions import PlayseqError
from playseq.orchestrator.orchestration import plan_commands, prepare_run

console = Console()


@click.command()
@run_config_options
def plan_command(**params) -> None:
    """Print the command every phase would run, without running it.

    Transient key, inventory and known hosts files are not written, and
    secret values are masked.

    \b
    Examples:
        playseq plan -d playbooks -o "setup, run"
        playseq plan -c playseq.yaml
    """
    try:
        config = config_from_options(params)
        plan = prepare_run(config)
        commands = plan_commands(config, plan)
    except PlayseqError as e:
        console.print(f"[red]Planning failed:[/red] {e}")
        raise to_click_exception(e)

    secrets = config.secrets.values()
    for number, phase_command in enumerate(commands, start=1):
        console.print(f"[cyan]{number}. {phase_command.phase}[/cyan]")
        for name, value in phase_command.environment.items():
            console.print(f"   [dim]{name}={value}[/dim]", highlight=False)
        console.print(f"   {mask_secrets(phase_command.command, secrets)}", highlight=False)

    if not commands:
        console.print("[yellow]No phases to run[/yellow]")
