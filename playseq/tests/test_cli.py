"""Tests for playseq CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from playseq.cli.main import cli
from playseq.core.action_store import ActionStore
from playseq.tests.mocks import MockProcessExecutor, MockResponse


@pytest.fixture
def cli_runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CLI runner working in a directory without a playseq.yaml."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def base_args(ansible_dir: Path):
    return ["-C", str(ansible_dir), "-d", "playbooks", "-o", "setup, run"]


class TestCLI:
    """Test top-level CLI behaviour."""

    def test_cli_help(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "run Ansible playbooks phase by phase" in result.output
        for command in ("run", "phases", "plan", "cleanup"):
            assert command in result.output

    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "playseq" in result.output

    def test_missing_required_input(self, cli_runner: CliRunner, ansible_dir: Path):
        result = cli_runner.invoke(cli, ["phases", "-C", str(ansible_dir), "-d", "playbooks"])

        assert result.exit_code == 1
        assert "execution_order" in result.output


class TestPhasesCommand:
    """Test the phases listing."""

    def test_valid_order(self, cli_runner: CliRunner, base_args):
        result = cli_runner.invoke(cli, ["phases", *base_args])

        assert result.exit_code == 0
        assert "setup" in result.output
        assert "Execution order is valid" in result.output

    def test_mismatch_exit_code(self, cli_runner: CliRunner, ansible_dir: Path):
        result = cli_runner.invoke(
            cli, ["phases", "-C", str(ansible_dir), "-d", "playbooks", "-o", "setup"]
        )

        assert result.exit_code == 3
        assert "does not match" in result.output

    def test_subset_policy(self, cli_runner: CliRunner, ansible_dir: Path):
        result = cli_runner.invoke(
            cli,
            ["phases", "-C", str(ansible_dir), "-d", "playbooks", "-o", "run", "--policy", "subset"],
        )

        assert result.exit_code == 0
        assert "not in execution order" in result.output


class TestPlanCommand:
    """Test the dry run."""

    def test_plan_masks_secrets(self, cli_runner: CliRunner, ansible_dir: Path, base_args):
        result = cli_runner.invoke(
            cli,
            [
                "plan",
                *base_args,
                "--secrets",
                '{"TOKEN": "hunter2"}',
                "--extra-options",
                "<<all>>\n-e pw=%[[ secrets.TOKEN ]]",
            ],
        )

        assert result.exit_code == 0
        assert "1. setup" in result.output
        assert "2. run" in result.output
        assert "-e pw=***" in result.output
        assert "hunter2" not in result.output
        assert "ANSIBLE_HOST_KEY_CHECKING=False" in result.output

    def test_plan_writes_no_files(self, cli_runner: CliRunner, ansible_dir: Path, tmp_path: Path, base_args):
        key_file = tmp_path / "id_key"
        key_file.write_text("PRIVATE")

        result = cli_runner.invoke(cli, ["plan", *base_args, "--private-key-file", str(key_file)])

        assert result.exit_code == 0
        assert "--private-key" in result.output
        assert ".ansible_private_key" in result.output
        assert not (ansible_dir / ".ansible_private_key").exists()

    def test_plan_mismatch(self, cli_runner: CliRunner, ansible_dir: Path):
        result = cli_runner.invoke(
            cli, ["plan", "-C", str(ansible_dir), "-d", "playbooks", "-o", "setup, deploy"]
        )

        assert result.exit_code == 3


class TestRunAndCleanup:
    """Test running phases and cleaning up afterwards."""

    def _invoke_run(self, cli_runner: CliRunner, executor: MockProcessExecutor, args):
        with patch(
            "playseq.orchestrator.orchestration.ProcessExecutor", return_value=executor
        ):
            return cli_runner.invoke(cli, ["run", *args])

    def test_run_success(self, cli_runner: CliRunner, ansible_dir: Path, base_args):
        executor = MockProcessExecutor(working_dir=ansible_dir)
        executor.add_response("setup/main.yml", MockResponse(stdout="PLAY [setup]\n"))

        result = self._invoke_run(cli_runner, executor, base_args)

        assert result.exit_code == 0
        assert "PLAY [setup]" in result.output
        assert "All phases completed" in result.output
        store = ActionStore(ansible_dir / ".playseq")
        results = json.loads(store.get_output("results"))
        assert list(results) == ["setup", "run"]

    def test_run_failure(self, cli_runner: CliRunner, ansible_dir: Path, base_args):
        executor = MockProcessExecutor(working_dir=ansible_dir)
        executor.add_response("run/main.yml", MockResponse(stdout="fatal!\n", exit_code=2))

        result = self._invoke_run(cli_runner, executor, [*base_args, "--no-stream"])

        assert result.exit_code == 1
        assert "Phase 'run' failed" in result.output
        assert "fatal!" in result.output
        store = ActionStore(ansible_dir / ".playseq")
        assert list(json.loads(store.get_output("results"))) == ["setup"]

    def test_mismatch_runs_nothing(self, cli_runner: CliRunner, ansible_dir: Path):
        executor = MockProcessExecutor(working_dir=ansible_dir)

        result = self._invoke_run(
            cli_runner, executor, ["-C", str(ansible_dir), "-d", "playbooks", "-o", "run"]
        )

        assert result.exit_code == 3
        assert executor.calls == []

    def test_cleanup_after_run(
        self, cli_runner: CliRunner, ansible_dir: Path, tmp_path: Path, base_args
    ):
        inventory = tmp_path / "hosts"
        inventory.write_text("web1 ansible_host=10.0.0.1\n")
        executor = MockProcessExecutor(working_dir=ansible_dir)

        run = self._invoke_run(cli_runner, executor, [*base_args, "--inventory-file", str(inventory)])
        assert run.exit_code == 0
        assert (ansible_dir / ".ansible_inventory").exists()
        assert "--inventory .ansible_inventory" in executor.commands[0]

        result = cli_runner.invoke(cli, ["cleanup", "-C", str(ansible_dir)])

        assert result.exit_code == 0
        assert 'Deleting ".ansible_inventory" file' in result.output
        assert not (ansible_dir / ".ansible_inventory").exists()

        again = cli_runner.invoke(cli, ["cleanup", "-C", str(ansible_dir)])
        assert again.exit_code == 0
        assert "Nothing to clean up" in again.output

    def test_configured_log_level(self, cli_runner: CliRunner, ansible_dir: Path, tmp_path: Path, base_args):
        (tmp_path / "playseq.yaml").write_text("logging:\n  level: ERROR\n")
        executor = MockProcessExecutor(working_dir=ansible_dir)

        result = self._invoke_run(cli_runner, executor, base_args)

        assert result.exit_code == 0
        logs_dir = ansible_dir / ".playseq" / "logs"
        assert list(logs_dir.glob("sessions/*/activity.jsonl")) == []
