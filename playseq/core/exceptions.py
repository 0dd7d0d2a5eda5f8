"""playseq exception classes."""

from typing import Optional


class PlayseqError(Exception):
    """Base exception for all playseq errors."""

    pass


class ConfigurationError(PlayseqError):
    """Raised when a required input is missing or configuration is invalid."""

    pass


class PathNotFoundError(PlayseqError):
    """Raised when the phase discovery root cannot be listed."""

    pass


class PhaseMismatchError(PlayseqError):
    """Raised when the declared phase order does not match the phase directories."""

    def __init__(self, message: str, missing=(), undeclared=()):
        super().__init__(message)
        self.missing = sorted(set(missing))
        self.undeclared = sorted(set(undeclared))


class OptionsParseError(PlayseqError):
    """Raised when the structured extra-options document is malformed."""

    pass


class PhaseExecutionError(PlayseqError):
    """Raised when a phase command exits non-zero or cannot be spawned."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        exit_code: Optional[int] = None,
        output: str = "",
    ):
        super().__init__(message)
        self.phase = phase
        self.exit_code = exit_code
        self.output = output


class RequirementsError(PlayseqError):
    """Raised when installing galaxy requirements fails."""

    pass


class ActionStoreError(PlayseqError):
    """Raised when outputs or state cannot be persisted."""

    pass
