"""playseq run command."""

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from playseq.cli.options import config_from_options, run_config_options, to_click_exception
from playseq.core.action_store import ActionStore
from playseq.core.exceptions import PlayseqError
from playseq.orchestrator.orchestration import execute_run, prepare_run
from playseq.orchestrator.phase_runner import RunResult
from playseq.tracking.activity_logger import ActivityLogger

console = Console()


@click.command()
@run_config_options
@click.option(
    "--stream/--no-stream",
    default=True,
    help="Echo playbook output while phases run (default: on)",
)
def run_command(stream: bool, **params) -> None:
    """Run the playbook phases in the declared execution order.

    Every phase directory must hold a playbook (main.yml by default). The
    phases run one after another; the first failing phase stops the run.

    \b
    Examples:
        playseq run -d playbooks -o "setup, run, teardown"
        playseq run -c playseq.yaml --sudo
        playseq run -o "setup,run" --extra-options-file options.yml
    """
    try:
        config = config_from_options(params)
        plan = prepare_run(config)
    except PlayseqError as e:
        console.print(f"[red]Run aborted:[/red] {e}")
        raise to_click_exception(e)

    working_dir = config.get_working_dir()
    session_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    activity_logger = ActivityLogger(
        session_id=session_id, logs_dir=config.get_log_dir(), level=config.logging.level
    )
    store = ActionStore(working_dir / ".playseq")

    console.print(f"[blue]Running {len(plan.phase_order)} phase(s) in[/blue] {working_dir}")
    console.print(f"[dim]Order:[/dim] {', '.join(plan.phase_order) or '(none)'}")
    console.print(f"[dim]Logs:[/dim] {activity_logger.session_log_dir}")
    console.print()

    def progress_callback(phase: str, number: int, total: int, command: str) -> None:
        console.print(f"[cyan]Phase {number}/{total}:[/cyan] {phase}")
        console.print(f"[dim]{command}[/dim]", highlight=False)

    def output_callback(phase: str, chunk: str) -> None:
        console.out(chunk.rstrip("\n"), highlight=False)

    try:
        result = execute_run(
            config,
            plan,
            store,
            activity_logger=activity_logger,
            progress_callback=progress_callback,
            output_callback=output_callback if stream else None,
        )
    except PlayseqError as e:
        activity_logger.log_error(str(e))
        console.print(f"[red]Run failed:[/red] {e}")
        raise to_click_exception(e)

    _display_summary(result, show_failed_output=not stream)

    if not result.completed:
        raise to_click_exception(PlayseqError(result.error_message or "Run failed"))


def _display_summary(result: RunResult, show_failed_output: bool) -> None:
    """Show which phases ran and how the run ended."""
    table = Table(title="Phase results")
    table.add_column("Phase", style="cyan")
    table.add_column("Status")
    table.add_column("Output", justify="right")

    for phase, output in result.outputs.items():
        table.add_row(phase, "[green]completed[/green]", f"{len(output.splitlines())} lines")
    if result.failed_phase:
        table.add_row(result.failed_phase, "[red]failed[/red]", "")

    console.print()
    console.print(table)

    if result.completed:
        console.print(f"\n[green]✓ All phases completed[/green] in {result.duration_seconds:.1f}s")
    else:
        console.print(f"\n[red]✗ Phase '{result.failed_phase}' failed[/red]")
        if show_failed_output and result.failed_output:
            console.print("[dim]Last output of the failed phase:[/dim]")
            console.out(result.failed_output[-2000:], highlight=False)
