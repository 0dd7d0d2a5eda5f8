"""Core playseq functionality."""

from .action_store import ActionStore
from .command_builder import CommandBuilder, PhaseCommand, mask_secrets
from .credentials import CredentialFiles, remove_transient_files
from .discovery import (
    ValidationPolicy,
    discover_phases,
    parse_phase_order,
    split_comma_list,
    validate_phase_order,
)
from .exceptions import (
    ActionStoreError,
    ConfigurationError,
    OptionsParseError,
    PathNotFoundError,
    PhaseExecutionError,
    PhaseMismatchError,
    PlayseqError,
    RequirementsError,
)
from .extra_options import (
    GLOBAL,
    OptionGroup,
    OptionTable,
    build_option_table,
    merge_option_tables,
    options_for_phase,
    parse_inline_options,
    load_options_file,
    substitute_placeholders,
)
from .process_executor import ProcessExecutor, ProcessResult

__all__ = [
    # Exceptions
    "PlayseqError",
    "ConfigurationError",
    "PathNotFoundError",
    "PhaseMismatchError",
    "OptionsParseError",
    "PhaseExecutionError",
    "RequirementsError",
    "ActionStoreError",
    # Discovery
    "ValidationPolicy",
    "discover_phases",
    "parse_phase_order",
    "split_comma_list",
    "validate_phase_order",
    # Extra options
    "GLOBAL",
    "OptionGroup",
    "OptionTable",
    "build_option_table",
    "merge_option_tables",
    "options_for_phase",
    "parse_inline_options",
    "load_options_file",
    "substitute_placeholders",
    # Commands and processes
    "CommandBuilder",
    "PhaseCommand",
    "mask_secrets",
    "CredentialFiles",
    "remove_transient_files",
    "ProcessExecutor",
    "ProcessResult",
    "ActionStore",
]
