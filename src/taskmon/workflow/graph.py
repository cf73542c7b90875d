"""Graph workflow definition."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping

import httpx
from pydantic_graph import Graph

from taskmon.client import CheckinClient
from taskmon.core.config import Config
from taskmon.core.log import logger
from taskmon.core.state import Invocation


def create_workflow() -> Graph:
    """Create the invocation workflow graph.

    Linear, no back edges:
    Initialize → Execute → Format → Complete → End

    Returns:
        Graph workflow with Invocation as state_type
    """
    logger.debug("Building workflow graph")

    # Import nodes (lazy to avoid circular imports)
    from taskmon.workflow.nodes.complete import Complete
    from taskmon.workflow.nodes.execute import Execute
    from taskmon.workflow.nodes.format import Format
    from taskmon.workflow.nodes.initialize import Initialize

    return Graph(
        nodes=(
            Initialize,
            Execute,
            Format,
            Complete,
        ),
        state_type=Invocation,
    )


async def run_workflow(state: Invocation) -> httpx.Response:
    """Run the workflow over an invocation state.

    Args:
        state: Invocation with config and client set

    Returns:
        Response to the completion ping

    Raises:
        CheckinError: If the completion ping could not be delivered
    """
    from taskmon.workflow.nodes.initialize import Initialize

    workflow = create_workflow()
    async with workflow.iter(Initialize(), state=state) as run:
        async for node in run:
            logger.trace("Workflow step", node=type(node).__name__)

    return run.result.output


def run_invocation(
    config: Config,
    client: CheckinClient | None = None,
    environment: Mapping[str, str] | None = None,
) -> httpx.Response:
    """Run the command described by config and report its outcome.

    Args:
        config: Validated configuration
        client: Check-in client; one is created from config if None
        environment: Environment snapshot for --env (defaults to
            os.environ)

    Returns:
        Response to the completion ping

    Raises:
        CheckinError: If the completion ping could not be delivered
    """
    if client is None:
        client = CheckinClient.from_config(config)
    if environment is None:
        environment = os.environ

    with Invocation(
        config=config,
        client=client,
        environment=dict(environment),
    ) as state:
        return asyncio.run(run_workflow(state))
