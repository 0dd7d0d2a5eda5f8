"""Activity logging for playseq runs."""

import json
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events that can be logged."""

    RUN_START = "run_start"
    RUN_END = "run_end"
    PHASE_START = "phase_start"
    PHASE_COMPLETE = "phase_complete"
    PHASE_FAIL = "phase_fail"
    COMMAND_EXECUTE = "command_execute"
    FILE_WRITE = "file_write"
    REQUIREMENTS_INSTALL = "requirements_install"
    ERROR = "error"
    INFO = "info"


LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

# Events not listed are logged at INFO
EVENT_LEVELS = {
    EventType.FILE_WRITE: "DEBUG",
    EventType.PHASE_FAIL: "ERROR",
    EventType.ERROR: "ERROR",
}


class ActivityEvent(BaseModel):
    """Activity event model."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: EventType = Field(..., description="Type of event")
    session_id: str = Field(..., description="Session identifier")
    phase: Optional[str] = Field(None, description="Phase name")
    message: str = Field(..., description="Event message")

    data: Dict[str, Any] = Field(
        default_factory=dict, description="Additional event data"
    )

    working_directory: Optional[str] = Field(None, description="Working directory")
    duration_ms: Optional[int] = Field(None, description="Duration in milliseconds")
    exit_code: Optional[int] = Field(None, description="Exit code for commands")


class CommandExecutionEvent(BaseModel):
    """Command execution event details."""

    command: str = Field(..., description="Command executed (secrets masked)")
    working_directory: str = Field(..., description="Working directory")
    exit_code: Optional[int] = Field(None, description="Exit code")
    duration_ms: int = Field(..., description="Execution duration in milliseconds")
    environment: Dict[str, str] = Field(
        default_factory=dict, description="Variables set for the command"
    )


class ActivityLogger:
    """Thread-safe JSONL activity logger for one run."""

    def __init__(self, session_id: str, logs_dir: Path, level: str = "INFO"):
        """Initialize activity logger.

        Args:
            session_id: Current session identifier
            logs_dir: Directory to store log files
            level: Lowest level written; events below it are dropped
        """
        if level.upper() not in LOG_LEVELS:
            raise ValueError(f"level must be one of: {', '.join(LOG_LEVELS)}")

        self.session_id = session_id
        self.level = level.upper()
        self.logs_dir = logs_dir
        self.session_log_dir = logs_dir / "sessions" / session_id

        self.session_log_dir.mkdir(parents=True, exist_ok=True)

        self.main_log_file = self.session_log_dir / "activity.jsonl"
        self.commands_log_file = self.session_log_dir / "commands.jsonl"

        self._lock = threading.Lock()

    def is_enabled(self, event_type: EventType) -> bool:
        """Check whether events of a type pass the configured level."""
        event_level = EVENT_LEVELS.get(event_type, "INFO")
        return LOG_LEVELS[event_level] >= LOG_LEVELS[self.level]

    def log_event(
        self,
        event_type: EventType,
        message: str,
        phase: Optional[str] = None,
        **kwargs,
    ) -> None:
        """Log a general activity event.

        Args:
            event_type: Type of event
            message: Event message
            phase: Optional phase name
            **kwargs: Additional event data
        """
        if not self.is_enabled(event_type):
            return

        event_fields = {
            "event_type": event_type,
            "session_id": self.session_id,
            "phase": phase,
            "message": message,
        }

        data_fields = {}
        for key, value in kwargs.items():
            if key in ("working_directory", "duration_ms", "exit_code"):
                event_fields[key] = value
            else:
                data_fields[key] = value

        if data_fields:
            event_fields["data"] = data_fields

        self._write_event(self.main_log_file, ActivityEvent(**event_fields))

    def log_run_start(self, working_directory: str, phase_order: List[str]) -> None:
        self.log_event(
            EventType.RUN_START,
            f"Run started: {', '.join(phase_order) or '(no phases)'}",
            working_directory=working_directory,
            phase_order=phase_order,
        )

    def log_run_end(self, success: bool, duration_ms: int, phases_run: List[str]) -> None:
        self.log_event(
            EventType.RUN_END,
            "Run completed" if success else "Run failed",
            duration_ms=duration_ms,
            success=success,
            phases_run=phases_run,
        )

    def log_phase_start(self, phase: str, playbook: str) -> None:
        self.log_event(
            EventType.PHASE_START, f"Phase started: {phase}", phase=phase, playbook=playbook
        )

    def log_phase_complete(self, phase: str, duration_ms: int, output_bytes: int) -> None:
        self.log_event(
            EventType.PHASE_COMPLETE,
            f"Phase completed: {phase}",
            phase=phase,
            duration_ms=duration_ms,
            output_bytes=output_bytes,
        )

    def log_phase_fail(
        self, phase: str, error: str, duration_ms: int, exit_code: Optional[int] = None
    ) -> None:
        self.log_event(
            EventType.PHASE_FAIL,
            f"Phase failed: {error}",
            phase=phase,
            duration_ms=duration_ms,
            exit_code=exit_code,
            error=error,
        )

    def log_command_execution(
        self, cmd_event: CommandExecutionEvent, phase: Optional[str] = None
    ) -> None:
        """Log command execution event.

        Args:
            cmd_event: Command execution details
            phase: Optional phase name
        """
        if not self.is_enabled(EventType.COMMAND_EXECUTE):
            return

        self.log_event(
            EventType.COMMAND_EXECUTE,
            f"Executed command: {cmd_event.command}",
            phase=phase,
            exit_code=cmd_event.exit_code,
            duration_ms=cmd_event.duration_ms,
            working_directory=cmd_event.working_directory,
        )

        self._write_event(self.commands_log_file, cmd_event, phase=phase)

    def log_file_write(self, kind: str, file_name: str) -> None:
        self.log_event(
            EventType.FILE_WRITE, f"Wrote transient file {file_name}", kind=kind, file=file_name
        )

    def log_requirements_install(self, requirements: str, commands: List[str]) -> None:
        self.log_event(
            EventType.REQUIREMENTS_INSTALL,
            f"Installed requirements from {requirements}",
            commands=commands,
        )

    def log_error(self, error: str, phase: Optional[str] = None, **kwargs) -> None:
        """Log error event.

        Args:
            error: Error message
            phase: Optional phase name
            **kwargs: Additional error context
        """
        self.log_event(EventType.ERROR, error, phase=phase, error=error, **kwargs)

    def log_info(self, message: str, phase: Optional[str] = None, **kwargs) -> None:
        self.log_event(EventType.INFO, message, phase=phase, **kwargs)

    def get_events(self, phase: Optional[str] = None) -> List[ActivityEvent]:
        """Get the events of this session, optionally for one phase.

        Args:
            phase: Only return events of this phase

        Returns:
            Events in the order they were logged
        """
        events = []

        if self.main_log_file.exists():
            with open(self.main_log_file, "r", encoding="utf-8") as f:
                for line in f:
                    try:
                        event = ActivityEvent(**json.loads(line.strip()))
                    except (json.JSONDecodeError, ValueError):
                        continue
                    if phase is None or event.phase == phase:
                        events.append(event)

        return events

    def _write_event(
        self,
        log_file: Path,
        event: Union[BaseModel, Dict[str, Any]],
        phase: Optional[str] = None,
    ) -> None:
        """Append one event as a JSON line."""
        if isinstance(event, BaseModel):
            record = event.model_dump(mode="json")
        else:
            record = dict(event)

        if phase is not None and "phase" not in record:
            record["phase"] = phase

        with self._lock:
            with open(log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, default=str) + "\n")
