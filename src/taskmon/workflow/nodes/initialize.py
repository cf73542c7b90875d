"""Initialize node - decide on run correlation and send the start ping."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from pydantic_graph import BaseNode, GraphRunContext

from taskmon.client import CheckinError
from taskmon.core.log import logger
from taskmon.core.state import Invocation


@dataclass
class Initialize(BaseNode[Invocation]):
    """Send the start ping when --time is set."""

    async def run(
        self, ctx: GraphRunContext[Invocation]
    ) -> Execute:
        """Generate a run id and ping the start endpoint.

        A failed start ping is logged and otherwise ignored; the
        server flags a missing start on its own, and the command
        still has to run.

        Returns:
            Execute: Next node to run the command
        """
        if ctx.state.config.time:
            # Only bother with a run id when there is a start ping to pair
            ctx.state.run_id = uuid4()
            try:
                ctx.state.client.notify_start(ctx.state.run_id)
                ctx.state.status = "started"
            except CheckinError as e:
                logger.warn(
                    "Failed to send start request: {error}",
                    error=str(e),
                )

        from taskmon.workflow.nodes.execute import Execute
        return Execute()
