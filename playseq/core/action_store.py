"""Outputs and state slots of a playseq run.

Outputs are the values a run hands back to its caller (the JSON-encoded
results). State slots record what a run left on disk, such as the
transient credential files, so that ``playseq cleanup`` can remove them
later. Both live as JSON files in the store directory. When running on a
CI runner that exposes ``GITHUB_OUTPUT``, outputs are also appended there.
"""

import json
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import ActionStoreError

DEFAULT_STORE_DIR = ".playseq"
STATE_FILE = "state.json"
OUTPUTS_FILE = "outputs.json"

_store_lock = threading.Lock()


class ActionStore:
    """JSON-file backed outputs and state."""

    def __init__(
        self,
        store_dir: Union[str, Path, None] = None,
        github_output: Union[str, Path, None] = None,
    ):
        """Initialize the store.

        Args:
            store_dir: Directory for state.json and outputs.json
            github_output: Runner output file (defaults to $GITHUB_OUTPUT)
        """
        self.store_dir = Path(store_dir) if store_dir else Path.cwd() / DEFAULT_STORE_DIR
        self.state_file = self.store_dir / STATE_FILE
        self.outputs_file = self.store_dir / OUTPUTS_FILE

        if github_output is None:
            github_output = os.environ.get("GITHUB_OUTPUT") or None
        self.github_output = Path(github_output) if github_output else None

    def set_output(self, name: str, value: str) -> None:
        """Record an output value."""
        with _store_lock:
            outputs = self._read_json(self.outputs_file)
            outputs[name] = value
            self._write_json(self.outputs_file, outputs)

            if self.github_output:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                try:
                    with open(self.github_output, "a", encoding="utf-8") as f:
                        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
                except OSError as e:
                    raise ActionStoreError(
                        f"Failed to write output to {self.github_output}: {e}"
                    ) from e

    def get_output(self, name: str) -> Optional[str]:
        return self._read_json(self.outputs_file).get(name)

    def save_state(self, name: str, value: str) -> None:
        """Record a state slot."""
        with _store_lock:
            state = self._read_json(self.state_file)
            state[name] = value
            self._write_json(self.state_file, state)

    def get_state(self, name: str) -> Optional[str]:
        return self.load_state().get(name)

    def load_state(self) -> Dict[str, Any]:
        return self._read_json(self.state_file)

    def clear_state(self) -> None:
        with _store_lock:
            if self.state_file.exists():
                self.state_file.unlink()

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ActionStoreError(f"Corrupted store file {path}: {e}") from e
        except OSError as e:
            raise ActionStoreError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict):
            raise ActionStoreError(f"Store file {path} must contain a JSON object")
        return data

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ActionStoreError(f"Failed to write {path}: {e}") from e
