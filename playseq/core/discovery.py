"""Phase discovery and phase order validation.

A phase is a subdirectory of the playbook directory. The caller declares
the order in which phases run; before anything executes, the declared
order is checked against the directories that actually exist.
"""

from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Union

from .exceptions import PathNotFoundError, PhaseMismatchError


class ValidationPolicy(str, Enum):
    """How the declared phase order is checked against discovered phases."""

    STRICT = "strict"
    SUBSET = "subset"


def split_comma_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated declaration into trimmed items.

    Duplicates are preserved. An empty or missing declaration yields an
    empty list.

    Example:
        "a, b,   c" -> ["a", "b", "c"]
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",")]


def parse_phase_order(execution_order: Optional[str]) -> List[str]:
    """Convert an execution order declaration into a phase order."""
    return split_comma_list(execution_order)


def discover_phases(
    root: Union[str, Path], exclude: Union[str, Iterable[str], None] = None
) -> Set[str]:
    """List the phase directories under a root path.

    Args:
        root: Directory whose immediate subdirectories are phases
        exclude: Comma-separated string or iterable of names to skip

    Returns:
        Set of subdirectory names, minus the excluded ones. Symlinks are
        not phases, even when they point at a directory.

    Raises:
        PathNotFoundError: If the root does not exist or is not a directory
    """
    root_path = Path(root)

    if isinstance(exclude, str) or exclude is None:
        excluded = set(split_comma_list(exclude))
    else:
        excluded = {name.strip() for name in exclude}

    try:
        entries = list(root_path.iterdir())
    except FileNotFoundError as e:
        raise PathNotFoundError(f"Playbook directory not found: {root_path}") from e
    except NotADirectoryError as e:
        raise PathNotFoundError(
            f"Playbook directory is not a directory: {root_path}"
        ) from e
    except OSError as e:
        raise PathNotFoundError(
            f"Cannot list playbook directory {root_path}: {e}"
        ) from e

    return {
        entry.name
        for entry in entries
        if entry.is_dir() and not entry.is_symlink() and entry.name not in excluded
    }


def is_strictly_equal(phase_order: Sequence[str], discovered: Iterable[str]) -> bool:
    """Check that the declared phases and discovered phases are the same set.

    Order does not matter. Every declared phase needs a directory and every
    directory must be declared.
    """
    declared = sorted(set(phase_order))
    found = sorted(set(discovered))
    return declared == found


def is_subset(phase_order: Sequence[str], discovered: Iterable[str]) -> bool:
    """Check that every declared phase has a matching directory."""
    return set(phase_order) <= set(discovered)


def validate_phase_order(
    phase_order: Sequence[str],
    discovered: Iterable[str],
    policy: ValidationPolicy = ValidationPolicy.STRICT,
) -> None:
    """Validate the declared phase order against the discovered phases.

    Args:
        phase_order: Declared order, may contain duplicates
        discovered: Discovered phase directory names
        policy: Strict set equality or subset sufficiency

    Raises:
        PhaseMismatchError: If the declared order is not admissible
    """
    policy = ValidationPolicy(policy)
    discovered = set(discovered)
    declared = set(phase_order)

    missing = declared - discovered
    undeclared = discovered - declared

    if policy == ValidationPolicy.STRICT:
        admissible = is_strictly_equal(phase_order, discovered)
    else:
        admissible = is_subset(phase_order, discovered)

    if admissible:
        return

    details = []
    if missing:
        details.append(f"no directory for: {', '.join(sorted(missing))}")
    if undeclared and policy == ValidationPolicy.STRICT:
        details.append(f"not in execution order: {', '.join(sorted(undeclared))}")

    message = "The execution order does not match the names of the phase directories"
    if details:
        message += f" ({'; '.join(details)})"

    raise PhaseMismatchError(
        message,
        missing=missing,
        undeclared=undeclared if policy == ValidationPolicy.STRICT else (),
    )
