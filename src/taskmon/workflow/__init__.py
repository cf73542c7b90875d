"""Invocation workflow: start ping, run, format, completion ping."""

from taskmon.workflow.graph import create_workflow, run_invocation

__all__ = ["create_workflow", "run_invocation"]
