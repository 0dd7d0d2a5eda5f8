"""Configuration models for playseq."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from playseq.core.discovery import ValidationPolicy


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Log level")
    output_dir: str = Field(default=".playseq/logs", description="Log output directory")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARN", "ERROR"]
        if v.upper() not in valid_levels:
            raise ValueError(f"level must be one of: {', '.join(valid_levels)}")
        return v.upper()


class RunConfig(BaseModel):
    """Inputs of one orchestration run."""

    model_config = ConfigDict(extra="forbid")

    ansible_directory: str = Field(default=".", description="Working directory")
    playbook_directory: str = Field(..., description="Directory holding phase directories")
    execution_order: str = Field(..., description="Comma-separated phase order")
    exclude_dirs: Optional[str] = Field(
        default=None, description="Comma-separated directories that are not phases"
    )
    requirements: Optional[str] = Field(
        default=None, description="Ansible Galaxy requirements file"
    )
    private_key: Optional[str] = Field(default=None, description="SSH private key")
    inventory: Optional[str] = Field(default=None, description="Inventory content")
    known_hosts: Optional[str] = Field(default=None, description="Known hosts content")
    sudo: bool = Field(default=False, description="Run playbooks with sudo")
    extra_options: Optional[str] = Field(
        default=None, description="Inline grouped extra options"
    )
    extra_options_file: Optional[str] = Field(
        default=None, description="YAML file with grouped extra options"
    )
    secrets: Dict[str, str] = Field(
        default_factory=dict, description="Secrets for option placeholders"
    )
    validation_policy: ValidationPolicy = Field(
        default=ValidationPolicy.STRICT,
        description="How the execution order is checked against phase directories",
    )
    playbook_file: str = Field(default="main.yml", description="Playbook inside each phase")
    executable: str = Field(default="ansible-playbook", description="Playbook runner")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @field_validator("playbook_directory", "execution_order", "playbook_file", "executable")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate required strings are not blank."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("sudo", mode="before")
    @classmethod
    def validate_sudo(cls, v: Any) -> bool:
        """Only a true boolean or the exact string 'true' enables sudo."""
        if isinstance(v, bool):
            return v
        return v == "true"

    @field_validator("secrets", mode="before")
    @classmethod
    def validate_secrets(cls, v: Any) -> Dict[str, str]:
        """Accept a mapping or a JSON-encoded object."""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"secrets must be a JSON object: {e}") from e
        if not isinstance(v, dict):
            raise ValueError("secrets must be a JSON object")
        return {str(key): "" if value is None else str(value) for key, value in v.items()}

    def get_working_dir(self) -> Path:
        """Get the working directory as a Path object."""
        return Path(self.ansible_directory).expanduser().resolve()

    def get_playbook_dir(self) -> Path:
        """Get the playbook directory, resolved against the working directory."""
        path = Path(self.playbook_directory).expanduser()
        if path.is_absolute():
            return path
        return self.get_working_dir() / path

    def get_log_dir(self) -> Path:
        """Get the log directory as a Path object."""
        path = Path(self.logging.output_dir).expanduser()
        if path.is_absolute():
            return path
        return self.get_working_dir() / path
