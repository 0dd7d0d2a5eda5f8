"""Options shared by the commands that load a run configuration."""

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click

from playseq.config.loader import load_config
from playseq.config.models import RunConfig
from playseq.core.discovery import ValidationPolicy
from playseq.core.exceptions import ConfigurationError, PhaseMismatchError, PlayseqError

PHASE_MISMATCH_EXIT_CODE = 3


class PlayseqClickException(click.ClickException):
    """ClickException that keeps the exit code of the underlying error kind."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def to_click_exception(error: PlayseqError) -> PlayseqClickException:
    """Report a playseq error as a single line; phase mismatches get their own code."""
    if isinstance(error, PhaseMismatchError):
        return PlayseqClickException(str(error), exit_code=PHASE_MISMATCH_EXIT_CODE)
    return PlayseqClickException(str(error))


def run_config_options(func: Callable) -> Callable:
    """Attach the run configuration options to a command."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Path to a playseq.yaml configuration file",
        ),
        click.option("--ansible-directory", "-C", help="Working directory of the run"),
        click.option("--playbook-directory", "-d", help="Directory holding one directory per phase"),
        click.option("--execution-order", "-o", help="Comma-separated phase order"),
        click.option("--exclude-dirs", help="Comma-separated directories that are not phases"),
        click.option("--requirements", help="Ansible Galaxy requirements file"),
        click.option(
            "--private-key-file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="File with the SSH private key",
        ),
        click.option(
            "--inventory-file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="File with the inventory",
        ),
        click.option(
            "--known-hosts-file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="File with known hosts; enables strict host key checking",
        ),
        click.option("--sudo/--no-sudo", default=None, help="Run playbooks with sudo"),
        click.option("--extra-options", help="Inline grouped extra options"),
        click.option("--extra-options-file", help="YAML file with grouped extra options"),
        click.option("--secrets", help="JSON object with secrets for option placeholders"),
        click.option(
            "--policy",
            "validation_policy",
            type=click.Choice([p.value for p in ValidationPolicy]),
            help="strict: phases and directories must match; subset: every phase needs a directory",
        ),
        click.option("--playbook-file", help="Playbook file inside each phase directory"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _read_file(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to read {path}: {e}") from e


def config_from_options(params: Dict[str, Any]) -> RunConfig:
    """Load the run configuration with CLI options as the top layer."""
    params = dict(params)
    config_path = params.pop("config_path", None)

    params["private_key"] = _read_file(params.pop("private_key_file", None))
    params["inventory"] = _read_file(params.pop("inventory_file", None))
    params["known_hosts"] = _read_file(params.pop("known_hosts_file", None))

    return load_config(config_path=config_path, overrides=params)
