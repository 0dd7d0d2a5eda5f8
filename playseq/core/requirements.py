"""Install Ansible Galaxy requirements before the phases run."""

from pathlib import Path
from typing import List, Union

import yaml

from .exceptions import PhaseExecutionError, RequirementsError
from .process_executor import ProcessExecutor

GALAXY = "ansible-galaxy"


def galaxy_commands(requirements: Union[str, Path], working_dir: Union[str, Path, None] = None) -> List[str]:
    """Work out the ansible-galaxy commands for a requirements file.

    A top-level list is installed with a plain ``install``. A mapping is
    split into a role install and a collection install, each only when
    the matching key is present.

    Raises:
        RequirementsError: If the file cannot be read or parsed
    """
    path = Path(requirements)
    if working_dir and not path.is_absolute():
        path = Path(working_dir) / path

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RequirementsError(f"Invalid YAML in requirements file {path}: {e}") from e
    except OSError as e:
        raise RequirementsError(f"Failed to read requirements file {path}: {e}") from e

    if isinstance(data, list):
        return [f"{GALAXY} install -r {requirements}"]

    commands = []
    if isinstance(data, dict):
        if data.get("roles"):
            commands.append(f"{GALAXY} role install -r {requirements}")
        if data.get("collections"):
            commands.append(f"{GALAXY} collection install -r {requirements}")
    return commands


def install_requirements(
    requirements: Union[str, Path], executor: ProcessExecutor
) -> List[str]:
    """Install the requirements and return the commands that ran."""
    commands = galaxy_commands(requirements, executor.working_dir)
    for command in commands:
        try:
            executor.run(command)
        except PhaseExecutionError as e:
            raise RequirementsError(f"Installing requirements failed: {e}") from e
    return commands
