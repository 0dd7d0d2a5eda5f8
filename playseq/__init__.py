"""
playseq: run Ansible playbooks phase by phase.

Each phase is a subdirectory of a playbook directory holding an entrypoint
playbook. playseq validates a caller-declared execution order against
those directories, builds one ansible-playbook command per phase with
credentials and extra options, and runs the phases in order, stopping at
the first failure.
"""

__version__ = "0.1.0"

from playseq.core.exceptions import PlayseqError

__all__ = ["PlayseqError", "__version__"]
