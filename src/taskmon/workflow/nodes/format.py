"""Format node - build the completion report."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from taskmon.core.formatter import format_report
from taskmon.core.state import Invocation


@dataclass
class Format(BaseNode[Invocation]):
    """Turn the execution result into a ReportPayload."""

    async def run(
        self, ctx: GraphRunContext[Invocation]
    ) -> Complete:
        config = ctx.state.config
        ctx.state.payload = format_report(
            ctx.state.result,
            config.command,
            config.format_options(ctx.state.environment),
        )
        ctx.state.status = "formatted"

        from taskmon.workflow.nodes.complete import Complete
        return Complete()
