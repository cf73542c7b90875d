"""Runtime state of a single invocation."""

from __future__ import annotations

from uuid import UUID

from pydantic import ConfigDict, Field

from taskmon.client import CheckinClient
from taskmon.core.base import BaseState
from taskmon.core.config import Config
from taskmon.core.result import ExecutionResult, ReportPayload


class Invocation(BaseState):
    """State flowing through the invocation workflow.

    Closing it closes the check-in client through the BaseCloseable
    cascade.
    """

    config: Config = Field(description="Validated configuration")
    client: CheckinClient = Field(
        description="CheckinClient used for both pings",
    )
    environment: dict[str, str] = Field(
        default_factory=dict,
        description="Environment snapshot used by --env",
    )
    run_id: UUID | None = Field(
        default=None,
        description="Correlation id shared by start and completion pings",
    )
    result: ExecutionResult | None = Field(
        default=None,
        description="Outcome of the monitored command",
    )
    payload: ReportPayload | None = Field(
        default=None,
        description="Report sent with the completion ping",
    )
    status: str = Field(
        default="idle",
        description=(
            "Workflow status: idle, started, executed, formatted, completed"
        ),
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)
