"""Shared pytest fixtures and utilities for playseq tests."""

from pathlib import Path
from typing import Generator

import pytest

from playseq.config.models import RunConfig
from playseq.core.action_store import ActionStore
from playseq.core.credentials import CredentialFiles
from playseq.tests.mocks import MockProcessExecutor


# ============================================================================
# Directory and File Fixtures
# ============================================================================


@pytest.fixture
def ansible_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create an ansible working directory with a playbooks tree.

    The tree holds the phases ``setup`` and ``run``, each with a main.yml,
    plus a stray file that is not a phase.

    Yields:
        Path to the working directory
    """
    root = tmp_path / "ansible"
    playbooks = root / "playbooks"
    for phase in ("setup", "run"):
        (playbooks / phase).mkdir(parents=True)
        (playbooks / phase / "main.yml").write_text(
            f"- hosts: all\n  tasks:\n    - debug: msg={phase}\n"
        )
    (playbooks / "README.md").write_text("not a phase\n")

    yield root


@pytest.fixture(autouse=True)
def _no_runner_outputs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests from appending to a real runner output file."""
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    for name in list(RunConfig.model_fields):
        monkeypatch.delenv(f"INPUT_{name.upper()}", raising=False)


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def run_config(ansible_dir: Path) -> RunConfig:
    """Minimal configuration for the two-phase tree."""
    return RunConfig(
        ansible_directory=str(ansible_dir),
        playbook_directory="playbooks",
        execution_order="setup, run",
    )


@pytest.fixture
def mock_executor(ansible_dir: Path) -> MockProcessExecutor:
    """Scripted process executor working in the ansible directory."""
    return MockProcessExecutor(working_dir=ansible_dir)


@pytest.fixture
def action_store(ansible_dir: Path) -> ActionStore:
    """Action store inside the ansible directory."""
    return ActionStore(ansible_dir / ".playseq")


@pytest.fixture
def credential_files(tmp_path: Path) -> CredentialFiles:
    """Credential writer in an empty directory."""
    directory = tmp_path / "work"
    directory.mkdir()
    return CredentialFiles(directory)
