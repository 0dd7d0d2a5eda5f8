"""Main CLI entry point for playseq."""

import sys

import click
from rich.console import Console

from playseq import __version__
from playseq.cli.commands.cleanup import cleanup_command
from playseq.cli.commands.phases import phases_command
from playseq.cli.commands.plan import plan_command
from playseq.cli.commands.run import run_command
from playseq.core.exceptions import PlayseqError

console = Console()


@click.group()
@click.version_option(__version__, prog_name="playseq")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """playseq: run Ansible playbooks phase by phase.

    Each subdirectory of the playbook directory is a phase with its own
    playbook. Phases run in the declared execution order and the run stops
    at the first failing phase.

    \b
    Examples:
        playseq phases -d playbooks -o "setup, run"   # Check the execution order
        playseq plan -d playbooks -o "setup, run"     # Show the commands
        playseq run -d playbooks -o "setup, run"      # Run the phases
        playseq cleanup                               # Remove transient files
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        console.print("[dim]playseq starting with verbose output enabled[/dim]")


cli.add_command(run_command, name="run")
cli.add_command(phases_command, name="phases")
cli.add_command(plan_command, name="plan")
cli.add_command(cleanup_command, name="cleanup")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except PlayseqError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
