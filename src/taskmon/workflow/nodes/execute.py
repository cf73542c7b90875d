"""Execute node - run the monitored command."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from taskmon.core.runner import execute
from taskmon.core.state import Invocation


@dataclass
class Execute(BaseNode[Invocation]):
    """Run the command, capturing output unless --ping-only."""

    async def run(
        self, ctx: GraphRunContext[Invocation]
    ) -> Format:
        config = ctx.state.config
        ctx.state.result = execute(
            config.command,
            capture=not config.ping_only,
            verbose=config.verbose,
        )
        ctx.state.status = "executed"

        from taskmon.workflow.nodes.format import Format
        return Format()
