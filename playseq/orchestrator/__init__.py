"""Orchestration layer for running playbook phases in order.

This package validates the declared phase order, resolves extra options
and runs one ansible-playbook command per phase.
"""

from .orchestration import RunPlan, execute_run, plan_commands, prepare_run
from .phase_runner import PhaseRunner, RunResult

__all__ = [
    "PhaseRunner",
    "RunResult",
    "RunPlan",
    "prepare_run",
    "plan_commands",
    "execute_run",
]
