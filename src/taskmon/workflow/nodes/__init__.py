"""Workflow nodes for graph state machine."""

from taskmon.workflow.nodes.complete import Complete
from taskmon.workflow.nodes.execute import Execute
from taskmon.workflow.nodes.format import Format
from taskmon.workflow.nodes.initialize import Initialize

__all__ = [
    "Initialize",
    "Execute",
    "Format",
    "Complete",
]
