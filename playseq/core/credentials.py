"""Transient credential files handed to ansible-playbook.

Key, inventory and known-hosts material arrive as strings and are written
to fixed file names inside the working directory. The names never change
between phases or runs, so every write overwrites whatever a previous
(possibly crashed) run left behind, and a cleanup step can remove them
without knowing anything about the run.
"""

import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

PRIVATE_KEY = "ansible_private_key"
INVENTORY = "ansible_inventory"
KNOWN_HOSTS = "ansible_known_hosts"

TRANSIENT_KINDS = (PRIVATE_KEY, INVENTORY, KNOWN_HOSTS)

FILE_MODE = 0o600


def transient_file_name(kind: str) -> str:
    """Fixed file name for a kind of transient material."""
    if kind not in TRANSIENT_KINDS:
        raise ValueError(f"Unknown transient file kind: {kind}")
    return f".{kind}"


class CredentialFiles:
    """Writes transient credential files and records them for cleanup."""

    def __init__(
        self,
        directory: Union[str, Path, None] = None,
        on_write: Optional[Callable[[str, str], None]] = None,
        dry_run: bool = False,
    ):
        """Initialize the writer.

        Args:
            directory: Directory the files are written to (cwd if None)
            on_write: Callback receiving (kind, file_name) after each write
            dry_run: Compute file names without touching the filesystem
        """
        self.directory = Path(directory) if directory else Path.cwd()
        self.on_write = on_write
        self.dry_run = dry_run
        self.written: Dict[str, str] = {}

    def write(self, kind: str, content: str) -> str:
        """Materialize content for a kind and return its file name.

        The returned name is relative to ``directory``, which is the
        working directory of the phase commands.
        """
        file_name = transient_file_name(kind)

        if not self.dry_run:
            path = self.directory / file_name
            data = content if content.endswith("\n") else content + "\n"
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            # O_CREAT mode is ignored for files that already exist
            os.chmod(path, FILE_MODE)

        self.written[kind] = file_name
        if self.on_write:
            self.on_write(kind, file_name)
        return file_name


def remove_transient_files(
    directory: Union[str, Path], file_names: Iterable[str]
) -> List[Path]:
    """Delete transient files that exist.

    Args:
        directory: Directory the files were written to
        file_names: File names recorded at write time

    Returns:
        Paths that were actually deleted
    """
    removed = []
    base = Path(directory)
    for name in file_names:
        if not name:
            continue
        path = base / name
        if path.exists():
            path.unlink()
            removed.append(path)
    return removed
