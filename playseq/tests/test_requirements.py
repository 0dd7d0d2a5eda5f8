"""Tests for Ansible Galaxy requirements installation."""

from pathlib import Path

import pytest

from playseq.core.exceptions import RequirementsError
from playseq.core.requirements import galaxy_commands, install_requirements
from playseq.tests.mocks import MockProcessExecutor, MockResponse


def write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestGalaxyCommands:
    """Test choosing ansible-galaxy commands."""

    def test_list_file(self, tmp_path: Path):
        path = write(tmp_path / "req.yml", "- src: geerlingguy.java\n")
        assert galaxy_commands(path) == [f"ansible-galaxy install -r {path}"]

    def test_roles_and_collections(self, tmp_path: Path):
        path = write(
            tmp_path / "req.yml",
            "roles:\n  - name: a.b\ncollections:\n  - name: community.general\n",
        )

        assert galaxy_commands(path) == [
            f"ansible-galaxy role install -r {path}",
            f"ansible-galaxy collection install -r {path}",
        ]

    def test_collections_only(self, tmp_path: Path):
        path = write(tmp_path / "req.yml", "collections:\n  - community.docker\n")
        assert galaxy_commands(path) == [f"ansible-galaxy collection install -r {path}"]

    def test_relative_to_working_dir(self, tmp_path: Path):
        write(tmp_path / "req.yml", "roles:\n  - a.b\n")

        assert galaxy_commands("req.yml", working_dir=tmp_path) == [
            "ansible-galaxy role install -r req.yml"
        ]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(RequirementsError, match="Failed to read"):
            galaxy_commands(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = write(tmp_path / "req.yml", "roles: [\n")
        with pytest.raises(RequirementsError, match="Invalid YAML"):
            galaxy_commands(path)


class TestInstallRequirements:
    """Test running the installs."""

    def test_runs_each_command(self, tmp_path: Path):
        write(tmp_path / "req.yml", "roles:\n  - a.b\ncollections:\n  - c.d\n")
        executor = MockProcessExecutor(working_dir=tmp_path)

        commands = install_requirements("req.yml", executor)

        assert executor.commands == commands
        assert len(commands) == 2

    def test_failure_wrapped(self, tmp_path: Path):
        write(tmp_path / "req.yml", "- a.b\n")
        executor = MockProcessExecutor(working_dir=tmp_path)
        executor.add_response("ansible-galaxy", MockResponse(exit_code=1))

        with pytest.raises(RequirementsError, match="Installing requirements failed"):
            install_requirements("req.yml", executor)
