"""Phase runner for executing playbooks in the declared order.

This module runs one ansible-playbook command per phase, strictly one
after another, and collects the combined output of every phase. The first
failing phase stops the run; outputs gathered before it are kept.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from ..core.command_builder import CommandBuilder, mask_secrets
from ..core.exceptions import PhaseExecutionError, PlayseqError
from ..core.extra_options import OptionTable
from ..core.process_executor import ProcessExecutor
from ..tracking.activity_logger import ActivityLogger, CommandExecutionEvent

DEFAULT_PLAYBOOK_FILE = "main.yml"


def playbook_path(
    playbook_dir: Union[str, Path], phase: str, playbook_file: str = DEFAULT_PLAYBOOK_FILE
) -> str:
    """Path of a phase playbook as passed to the playbook runner."""
    return str(Path(playbook_dir) / phase / playbook_file)


@dataclass
class RunResult:
    """Result of running all phases."""

    completed: bool
    outputs: Dict[str, str] = field(default_factory=dict)
    phases_run: List[str] = field(default_factory=list)
    failed_phase: Optional[str] = None
    failed_output: str = ""
    error_message: Optional[str] = None
    exit_code: Optional[int] = None
    duration_seconds: float = 0.0


class PhaseRunner:
    """Runs the phases of a playbook directory one at a time."""

    def __init__(
        self,
        command_builder: CommandBuilder,
        process_executor: ProcessExecutor,
        activity_logger: Optional[ActivityLogger] = None,
        secrets: Iterable[str] = (),
        progress_callback: Optional[Callable[[str, int, int, str], None]] = None,
        output_callback: Optional[Callable[[str, str], None]] = None,
    ):
        """Initialize phase runner.

        Args:
            command_builder: Builds the command of each phase
            process_executor: Runs commands and captures their output
            activity_logger: Optional activity logger
            secrets: Secret values to mask in logged commands
            progress_callback: Called with (phase, number, total, masked command)
                before a phase runs
            output_callback: Called with (phase, chunk) for every output chunk
        """
        self.command_builder = command_builder
        self.process_executor = process_executor
        self.activity_logger = activity_logger
        self.secrets = list(secrets)
        self.progress_callback = progress_callback
        self.output_callback = output_callback

    def run(
        self,
        phase_order: Sequence[str],
        playbook_dir: Union[str, Path],
        option_table: OptionTable,
        playbook_file: str = DEFAULT_PLAYBOOK_FILE,
    ) -> RunResult:
        """Run every phase in the declared order.

        Args:
            phase_order: Validated phase order, duplicates run again
            playbook_dir: Directory holding one subdirectory per phase
            option_table: Resolved extra options
            playbook_file: Playbook file name inside each phase directory

        Returns:
            RunResult; ``completed`` is False when a phase failed
        """
        start_time = time.time()
        result = RunResult(completed=False)
        total = len(phase_order)

        for number, phase in enumerate(phase_order, start=1):
            playbook = playbook_path(playbook_dir, phase, playbook_file)
            phase_start = time.time()

            if self.activity_logger:
                self.activity_logger.log_phase_start(phase, playbook)

            try:
                output = self._run_phase(phase, number, total, playbook, option_table)
            except (PlayseqError, OSError) as e:
                duration_ms = int((time.time() - phase_start) * 1000)
                exit_code = getattr(e, "exit_code", None)
                error = mask_secrets(f"Phase '{phase}' failed: {e}", self.secrets)

                if self.activity_logger:
                    self.activity_logger.log_phase_fail(
                        phase, error=error, duration_ms=duration_ms, exit_code=exit_code
                    )

                result.failed_phase = phase
                result.failed_output = getattr(e, "output", "")
                result.error_message = error
                result.exit_code = exit_code
                result.duration_seconds = time.time() - start_time
                self._log_run_end(result)
                return result

            result.outputs[phase] = output
            result.phases_run.append(phase)

            if self.activity_logger:
                self.activity_logger.log_phase_complete(
                    phase,
                    duration_ms=int((time.time() - phase_start) * 1000),
                    output_bytes=len(output.encode("utf-8")),
                )

        result.completed = True
        result.duration_seconds = time.time() - start_time
        self._log_run_end(result)
        return result

    def _run_phase(
        self,
        phase: str,
        number: int,
        total: int,
        playbook: str,
        option_table: OptionTable,
    ) -> str:
        """Build and execute the command of one phase, returning its output."""
        phase_command = self.command_builder.build(playbook, option_table, phase)
        masked = mask_secrets(phase_command.command, self.secrets)

        if self.progress_callback:
            self.progress_callback(phase, number, total, masked)

        callback = None
        if self.output_callback:
            callback = lambda chunk: self.output_callback(phase, chunk)

        start = time.time()
        try:
            process_result = self.process_executor.run(
                phase_command.command,
                env=phase_command.environment,
                on_stdout=callback,
                on_stderr=callback,
            )
        except PhaseExecutionError as e:
            self._log_command(phase, masked, e.exit_code, start, phase_command.environment)
            e.phase = phase
            raise

        self._log_command(
            phase, masked, process_result.exit_code, start, phase_command.environment
        )
        return process_result.output

    def _log_command(
        self,
        phase: str,
        command: str,
        exit_code: Optional[int],
        start: float,
        environment: Dict[str, str],
    ) -> None:
        if not self.activity_logger:
            return
        self.activity_logger.log_command_execution(
            CommandExecutionEvent(
                command=command,
                working_directory=str(self.process_executor.working_dir),
                exit_code=exit_code,
                duration_ms=int((time.time() - start) * 1000),
                environment=environment,
            ),
            phase=phase,
        )

    def _log_run_end(self, result: RunResult) -> None:
        if self.activity_logger:
            self.activity_logger.log_run_end(
                success=result.completed,
                duration_ms=int(result.duration_seconds * 1000),
                phases_run=result.phases_run,
            )
