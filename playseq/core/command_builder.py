"""Assemble the ansible-playbook invocation for a phase."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .credentials import INVENTORY, KNOWN_HOSTS, PRIVATE_KEY, CredentialFiles
from .extra_options import OptionTable, options_for_phase

DEFAULT_EXECUTABLE = "ansible-playbook"
PRIVILEGE_ESCALATION = "sudo"
HOST_KEY_CHECKING_VAR = "ANSIBLE_HOST_KEY_CHECKING"
MASK = "***"


@dataclass
class PhaseCommand:
    """Command line for one phase plus the environment it needs."""

    phase: str
    command: str
    environment: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.command


class CommandBuilder:
    """Builds phase commands from the run's connection settings.

    Components are joined with single spaces and nothing is shell-escaped:
    option strings with embedded spaces or quotes are passed through as
    written.
    """

    def __init__(
        self,
        credential_files: CredentialFiles,
        private_key: Optional[str] = None,
        inventory: Optional[str] = None,
        known_hosts: Optional[str] = None,
        sudo: bool = False,
        executable: str = DEFAULT_EXECUTABLE,
        env: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the builder.

        Args:
            credential_files: Writer used to materialize key/inventory/known hosts
            private_key: Private key material
            inventory: Inventory material
            known_hosts: Known hosts material
            sudo: Wrap commands with privilege escalation
            executable: Playbook runner binary
            env: Environment snapshot; PATH is read from it for sudo
        """
        self.credential_files = credential_files
        self.private_key = private_key
        self.inventory = inventory
        self.known_hosts = known_hosts
        self.sudo = sudo
        self.executable = executable
        self.env = dict(env or {})

    def build(self, playbook: str, option_table: OptionTable, phase: str) -> PhaseCommand:
        """Build the command for a phase.

        Args:
            playbook: Path of the phase playbook
            option_table: Resolved extra options
            phase: Phase name

        Returns:
            PhaseCommand with the literal command string
        """
        components: List[str] = [self.executable, playbook]
        environment: Dict[str, str] = {}

        if self.private_key:
            key_file = self.credential_files.write(PRIVATE_KEY, self.private_key)
            components.extend(["--private-key", key_file])

        if self.inventory:
            inventory_file = self.credential_files.write(INVENTORY, self.inventory)
            components.extend(["--inventory", inventory_file])

        if self.known_hosts:
            hosts_file = self.credential_files.write(KNOWN_HOSTS, self.known_hosts)
            components.append(f'--ssh-common-args="-o UserKnownHostsFile={hosts_file}"')
            environment[HOST_KEY_CHECKING_VAR] = "True"
        else:
            environment[HOST_KEY_CHECKING_VAR] = "False"

        components.extend(options_for_phase(option_table, phase))

        if self.sudo:
            path = self.env.get("PATH", "")
            components[:0] = [PRIVILEGE_ESCALATION, "-E", "env", f'PATH="{path}"']

        return PhaseCommand(
            phase=phase, command=" ".join(components), environment=environment
        )


def mask_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace every secret value occurring in text with a mask."""
    # Longest first so a secret containing another is masked whole
    for value in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(value, MASK)
    return text
