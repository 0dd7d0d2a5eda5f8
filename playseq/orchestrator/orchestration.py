"""End-to-end orchestration of one playseq run.

Ties the configuration to the phase runner: every check that can fail
(phase discovery, order validation, option parsing) happens in
``prepare`` before anything touches the working directory, and
``execute`` then installs requirements, runs the phases and publishes the
results.
"""

import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Set

from ..config.models import RunConfig
from ..core.action_store import ActionStore
from ..core.command_builder import CommandBuilder, PhaseCommand
from ..core.credentials import CredentialFiles
from ..core.discovery import discover_phases, parse_phase_order, validate_phase_order
from ..core.extra_options import OptionTable, build_option_table
from ..core.process_executor import ProcessExecutor
from ..core.requirements import install_requirements
from ..tracking.activity_logger import ActivityLogger
from .phase_runner import PhaseRunner, RunResult, playbook_path

RESULTS_OUTPUT = "results"
WORKING_DIR_STATE = "ansible_directory"


@dataclass
class RunPlan:
    """Everything decided before the first phase runs."""

    phase_order: List[str]
    discovered: Set[str]
    option_table: OptionTable
    env: Dict[str, str]


def prepare_run(config: RunConfig, env: Optional[Mapping[str, str]] = None) -> RunPlan:
    """Discover, validate and resolve options without side effects.

    Args:
        config: Run configuration
        env: Environment snapshot (defaults to a copy of os.environ)

    Returns:
        RunPlan for the run

    Raises:
        PathNotFoundError: If the playbook directory cannot be listed
        PhaseMismatchError: If the execution order does not fit the directories
        OptionsParseError: If the options file is malformed
    """
    snapshot = dict(os.environ if env is None else env)

    phase_order = parse_phase_order(config.execution_order)
    discovered = discover_phases(config.get_playbook_dir(), config.exclude_dirs)
    validate_phase_order(phase_order, discovered, config.validation_policy)

    options_file = config.extra_options_file
    if options_file and not os.path.isabs(options_file):
        options_file = str(config.get_working_dir() / options_file)

    option_table = build_option_table(
        config.extra_options, options_file, env=snapshot, secrets=config.secrets
    )
    return RunPlan(
        phase_order=phase_order,
        discovered=discovered,
        option_table=option_table,
        env=snapshot,
    )


def make_command_builder(
    config: RunConfig, credential_files: CredentialFiles, env: Mapping[str, str]
) -> CommandBuilder:
    return CommandBuilder(
        credential_files,
        private_key=config.private_key,
        inventory=config.inventory,
        known_hosts=config.known_hosts,
        sudo=config.sudo,
        executable=config.executable,
        env=env,
    )


def plan_commands(config: RunConfig, plan: RunPlan) -> List[PhaseCommand]:
    """Build every phase command without writing transient files."""
    builder = make_command_builder(
        config, CredentialFiles(config.get_working_dir(), dry_run=True), plan.env
    )
    return [
        builder.build(
            playbook_path(config.playbook_directory, phase, config.playbook_file),
            plan.option_table,
            phase,
        )
        for phase in plan.phase_order
    ]


def execute_run(
    config: RunConfig,
    plan: RunPlan,
    store: ActionStore,
    activity_logger: Optional[ActivityLogger] = None,
    process_executor: Optional[ProcessExecutor] = None,
    progress_callback: Optional[Callable[[str, int, int, str], None]] = None,
    output_callback: Optional[Callable[[str, str], None]] = None,
) -> RunResult:
    """Run the planned phases and publish the results output.

    The results output holds the outputs of the phases that completed,
    also when a later phase failed.

    Raises:
        RequirementsError: If installing requirements fails
    """
    working_dir = config.get_working_dir()
    executor = process_executor or ProcessExecutor(working_dir=working_dir)

    store.save_state(WORKING_DIR_STATE, str(working_dir))

    if activity_logger:
        activity_logger.log_run_start(str(working_dir), plan.phase_order)

    if config.requirements:
        commands = install_requirements(config.requirements, executor)
        if activity_logger:
            activity_logger.log_requirements_install(config.requirements, commands)

    def record_file(kind: str, file_name: str) -> None:
        store.save_state(kind, file_name)
        if activity_logger:
            activity_logger.log_file_write(kind, file_name)

    credential_files = CredentialFiles(working_dir, on_write=record_file)
    runner = PhaseRunner(
        make_command_builder(config, credential_files, plan.env),
        executor,
        activity_logger=activity_logger,
        secrets=config.secrets.values(),
        progress_callback=progress_callback,
        output_callback=output_callback,
    )

    result = runner.run(
        plan.phase_order,
        config.playbook_directory,
        plan.option_table,
        playbook_file=config.playbook_file,
    )
    store.set_output(RESULTS_OUTPUT, json.dumps(result.outputs))
    return result
