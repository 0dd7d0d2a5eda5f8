"""Extra command-line options for phase playbooks.

Options come from two independent sources: an inline grouped text block
and a structured YAML file. Both are parsed into an option table that maps
an option group (a phase, or every phase) to an ordered list of option
strings. The tables are merged, then deferred placeholders inside the
options are resolved against an environment snapshot and a secrets table.

Inline text format::

    <<setup>>
    --tags provision
    -e region=%[[ env.REGION ]]
    <<all>>
    -e token=%[[ secrets.API_TOKEN ]]

File format::

    setup:
      options:
        - --tags provision
    all:
      options:
        - -e token=%[[ secrets.API_TOKEN ]]
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

import yaml

from .exceptions import OptionsParseError

GLOBAL_GROUP_NAME = "all"
PHASE_PREFIX = "phase:"

_MARKER_PATTERN = re.compile(r"^<<(.+)>>$")
_PLACEHOLDER_PATTERN = re.compile(r"%\[\[\s*(env|secrets)\.(\w+)\s*\]\]")


@dataclass(frozen=True)
class OptionGroup:
    """Key of the option table.

    ``phase`` is the phase name the options belong to, or ``None`` for the
    group that applies to every phase.
    """

    phase: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.phase is None

    @classmethod
    def for_phase(cls, phase: str) -> "OptionGroup":
        return cls(phase=phase)

    @classmethod
    def from_label(cls, label: str) -> "OptionGroup":
        """Map a group label from either source to a group.

        ``all`` selects the global group; ``phase:NAME`` always selects a
        phase, which is how a phase literally named ``all`` is addressed.
        """
        label = label.strip()
        if label == GLOBAL_GROUP_NAME:
            return GLOBAL
        if label.startswith(PHASE_PREFIX):
            label = label[len(PHASE_PREFIX):].strip()
        if not label:
            raise OptionsParseError("Option group name must not be empty")
        return cls(phase=label)

    @property
    def label(self) -> str:
        if self.phase is None:
            return GLOBAL_GROUP_NAME
        if self.phase == GLOBAL_GROUP_NAME:
            return f"{PHASE_PREFIX}{self.phase}"
        return self.phase


GLOBAL = OptionGroup()

OptionTable = Dict[OptionGroup, List[str]]


def parse_inline_options(text: Optional[str]) -> OptionTable:
    """Parse the inline grouped options text.

    A ``<<GROUP>>`` line opens a group; every following non-blank line,
    trimmed, is one option until the next marker. Lines before the first
    marker are ignored. A group declared twice keeps its last block.

    Args:
        text: Multi-line grouped options, may be empty

    Returns:
        Option table in order of appearance
    """
    table: OptionTable = {}
    if not text:
        return table

    current: Optional[List[str]] = None
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        match = _MARKER_PATTERN.match(line)
        if match:
            group = OptionGroup.from_label(match.group(1))
            table.pop(group, None)
            current = table[group] = []
            continue

        if current is not None:
            current.append(line)

    return table


def parse_options_document(data: object, source: str = "<document>") -> OptionTable:
    """Convert a loaded options document into an option table.

    Raises:
        OptionsParseError: If the document does not have the expected shape
    """
    table: OptionTable = {}
    if data is None:
        return table

    if not isinstance(data, dict):
        raise OptionsParseError(
            f"Options file {source} must contain a mapping of groups, "
            f"got {type(data).__name__}"
        )

    for key, value in data.items():
        group = OptionGroup.from_label(str(key))

        if value is None:
            options = []
        elif isinstance(value, dict):
            options = value.get("options") or []
        else:
            raise OptionsParseError(
                f"Group '{key}' in {source} must be a mapping with an 'options' list"
            )

        if not isinstance(options, list):
            raise OptionsParseError(
                f"'options' of group '{key}' in {source} must be a list"
            )

        for option in options:
            if isinstance(option, (dict, list)) or option is None:
                raise OptionsParseError(
                    f"Options of group '{key}' in {source} must be strings"
                )

        table[group] = [str(option) for option in options]

    return table


def load_options_file(path: Union[str, Path, None]) -> OptionTable:
    """Load the structured options file.

    Args:
        path: Path to a YAML options file, may be empty

    Returns:
        Option table in file order

    Raises:
        OptionsParseError: If the file cannot be read or is malformed
    """
    if not path:
        return {}

    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise OptionsParseError(f"Invalid YAML in {file_path}: {e}") from e
    except OSError as e:
        raise OptionsParseError(f"Failed to read options file {file_path}: {e}") from e

    return parse_options_document(data, source=str(file_path))


def _dedupe(options: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for option in options:
        if option not in seen:
            seen.add(option)
            result.append(option)
    return result


def merge_option_tables(inline: OptionTable, from_file: OptionTable) -> OptionTable:
    """Merge the inline table with the file table.

    Groups present in both sources get the inline options followed by the
    file options with exact duplicates removed, first occurrence winning.
    Groups present in one source keep that source's list unchanged.
    """
    merged: OptionTable = {}

    for group, options in inline.items():
        if group in from_file:
            merged[group] = _dedupe(list(options) + list(from_file[group]))
        else:
            merged[group] = list(options)

    for group, options in from_file.items():
        if group not in merged:
            merged[group] = list(options)

    return merged


def substitute_placeholders(
    value: str,
    env: Mapping[str, str],
    secrets: Mapping[str, str],
) -> str:
    """Replace ``%[[ env.KEY ]]`` and ``%[[ secrets.KEY ]]`` placeholders.

    Unknown keys leave the placeholder text untouched.
    """

    def replace(match: "re.Match[str]") -> str:
        source, key = match.group(1), match.group(2)
        table = env if source == "env" else secrets
        if key in table:
            return str(table[key])
        return match.group(0)

    return _PLACEHOLDER_PATTERN.sub(replace, value)


def resolve_option_table(
    table: OptionTable,
    env: Mapping[str, str],
    secrets: Mapping[str, str],
) -> OptionTable:
    """Return a copy of the table with every placeholder resolved."""
    return {
        group: [substitute_placeholders(option, env, secrets) for option in options]
        for group, options in table.items()
    }


def build_option_table(
    inline_text: Optional[str] = None,
    options_file: Union[str, Path, None] = None,
    env: Optional[Mapping[str, str]] = None,
    secrets: Optional[Mapping[str, str]] = None,
) -> OptionTable:
    """Parse, merge and resolve both option sources into one table.

    Args:
        inline_text: Inline grouped options text
        options_file: Path to the structured options file
        env: Environment snapshot taken at run start
        secrets: Secrets table

    Returns:
        Resolved option table, empty if neither source is given
    """
    merged = merge_option_tables(
        parse_inline_options(inline_text), load_options_file(options_file)
    )
    return resolve_option_table(merged, env or {}, secrets or {})


def options_for_phase(table: OptionTable, phase: str) -> List[str]:
    """Options that apply to a phase: its own group first, then the global group."""
    return list(table.get(OptionGroup.for_phase(phase), [])) + list(
        table.get(GLOBAL, [])
    )
