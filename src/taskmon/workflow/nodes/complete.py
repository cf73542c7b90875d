"""Complete node - send the completion (or log) ping."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from pydantic_graph import BaseNode, End, GraphRunContext

from taskmon.core.log import logger
from taskmon.core.state import Invocation


@dataclass
class Complete(BaseNode[Invocation, None, httpx.Response]):
    """Report the outcome; the only ping whose failure is fatal."""

    async def run(
        self, ctx: GraphRunContext[Invocation]
    ) -> End[httpx.Response]:
        """Send the report.

        Returns:
            End[httpx.Response]: The server's 2xx response

        Raises:
            CheckinError: If the report could not be delivered
        """
        payload = ctx.state.payload
        response = ctx.state.client.notify_complete(
            ctx.state.run_id, payload.exit_code, payload.text
        )
        ctx.state.status = "completed"

        logger.info(
            "Reported {event} for {check}",
            event="log" if payload.exit_code is None else payload.exit_code,
            check=ctx.state.config.check_name,
            status_code=response.status_code,
        )
        return End(response)
