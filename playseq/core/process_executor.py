"""Run phase commands as subprocesses with streamed output capture.

Output from stdout and stderr is read on two threads and collected into a
single transcript in the order chunks arrive, while per-stream callbacks
let the caller echo progress live.
"""

import os
import shlex
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Union

from .exceptions import PhaseExecutionError

OutputCallback = Callable[[str], None]


def split_command(command: str) -> List[str]:
    """Split a command line into arguments.

    Only double quotes group words, and the quotes themselves are dropped.
    Apostrophes, backslashes and '#' reach the child process unchanged.

    Raises:
        ValueError: If a double quote is not closed
    """
    lexer = shlex.shlex(command, posix=True)
    lexer.whitespace_split = True
    lexer.quotes = '"'
    lexer.escape = ""
    lexer.commenters = ""
    return list(lexer)


@dataclass
class ProcessResult:
    """Result of one command execution."""

    command: str
    exit_code: int
    output: str
    duration_seconds: float

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessExecutor:
    """Execute command strings and capture their combined output."""

    def __init__(
        self,
        working_dir: Union[str, Path, None] = None,
        default_timeout: Optional[int] = None,
    ):
        """Initialize process executor.

        Args:
            working_dir: Working directory for command execution
            default_timeout: Default timeout in seconds, None waits forever
        """
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.default_timeout = default_timeout

    def run(
        self,
        command: str,
        env: Optional[Mapping[str, str]] = None,
        on_stdout: Optional[OutputCallback] = None,
        on_stderr: Optional[OutputCallback] = None,
        timeout: Optional[int] = None,
    ) -> ProcessResult:
        """Run a command string and wait for it to exit.

        The string is split on whitespace, with double quotes grouping an
        argument. Single quotes and backslashes are literal, and no shell
        is involved.

        Args:
            command: Command line to execute
            env: Variables added on top of the current environment
            on_stdout: Callback receiving each stdout chunk
            on_stderr: Callback receiving each stderr chunk
            timeout: Timeout in seconds (uses default if None)

        Returns:
            ProcessResult for a zero exit code

        Raises:
            PhaseExecutionError: If the command cannot be started, times out
                or exits with a non-zero code
        """
        if timeout is None:
            timeout = self.default_timeout

        try:
            args = split_command(command)
        except ValueError as e:
            raise PhaseExecutionError(f"Cannot parse command '{command}': {e}") from e
        if not args:
            raise PhaseExecutionError("Cannot execute an empty command")

        process_env = os.environ.copy()
        if env:
            process_env.update(env)

        chunks: List[str] = []
        lock = threading.Lock()
        start_time = time.time()

        try:
            process = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(self.working_dir),
                env=process_env,
                text=True,
                bufsize=1,  # Line buffered
            )
        except FileNotFoundError as e:
            raise PhaseExecutionError(
                f"Executable not found: {args[0]}. Is it installed?", exit_code=None
            ) from e
        except OSError as e:
            raise PhaseExecutionError(f"Failed to start '{args[0]}': {e}") from e

        def pump(stream, callback: Optional[OutputCallback]) -> None:
            for line in iter(stream.readline, ""):
                if line:
                    with lock:
                        chunks.append(line)
                    if callback:
                        callback(line)
            stream.close()

        stdout_thread = threading.Thread(
            target=pump, args=(process.stdout, on_stdout), daemon=True
        )
        stderr_thread = threading.Thread(
            target=pump, args=(process.stderr, on_stderr), daemon=True
        )
        stdout_thread.start()
        stderr_thread.start()

        try:
            exit_code = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.wait()
            stdout_thread.join(timeout=5)
            stderr_thread.join(timeout=5)
            raise PhaseExecutionError(
                f"Command timed out after {timeout}s: {args[0]}",
                output="".join(chunks),
            ) from e

        stdout_thread.join()
        stderr_thread.join()

        output = "".join(chunks)
        duration = time.time() - start_time

        if exit_code != 0:
            raise PhaseExecutionError(
                f"'{args[0]}' exited with code {exit_code}",
                exit_code=exit_code,
                output=output,
            )

        return ProcessResult(
            command=command,
            exit_code=exit_code,
            output=output,
            duration_seconds=duration,
        )
