"""playseq cleanup command."""

from pathlib import Path

import click
from rich.console import Console

from playseq.core.action_store import ActionStore
from playseq.core.credentials import TRANSIENT_KINDS, remove_transient_files
from playseq.core.exceptions import PlayseqError
from playseq.orchestrator.orchestration import WORKING_DIR_STATE

console = Console()


@click.command()
@click.option(
    "--ansible-directory",
    "-C",
    default=".",
    envvar="INPUT_ANSIBLE_DIRECTORY",
    type=click.Path(file_okay=False, path_type=Path),
    help="Working directory of the run to clean up (default: current directory)",
)
def cleanup_command(ansible_directory: Path) -> None:
    """Delete the transient files a run left in its working directory.

    Safe to run after failed runs and more than once.

    \b
    Examples:
        playseq cleanup
        playseq cleanup -C deploy/ansible
    """
    store = ActionStore(ansible_directory / ".playseq")

    try:
        state = store.load_state()
        directory = Path(state.get(WORKING_DIR_STATE) or ansible_directory)
        file_names = [state.get(kind) for kind in TRANSIENT_KINDS]
        removed = remove_transient_files(directory, file_names)
        store.clear_state()
    except (PlayseqError, OSError) as e:
        console.print(f"[red]Cleanup failed:[/red] {e}")
        raise click.ClickException(f"Cleanup failed: {e}")

    for path in removed:
        console.print(f'Deleting "{path.name}" file')

    if not removed:
        console.print("[dim]Nothing to clean up[/dim]")
