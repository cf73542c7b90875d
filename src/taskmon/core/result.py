"""Result types for command execution and check-in reports."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# Exit code reported when the real one can't be represented or known
FALLBACK_EXIT_CODE = 127


class Exited(BaseModel):
    """Process exited normally with a return code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["exited"] = "exited"
    code: int


class Signaled(BaseModel):
    """Process was terminated by a signal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["signaled"] = "signaled"
    signal: int


class Undetermined(BaseModel):
    """Process could not be launched or its status is unknown."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["undetermined"] = "undetermined"


ExitStatus = Annotated[
    Exited | Signaled | Undetermined, Field(discriminator="kind")
]


def normalize_exit_status(status: ExitStatus) -> int:
    """Collapse an exit status into a single 0-255 exit code.

    Args:
        status: Exit status of the process

    Returns:
        The exit code for Exited (127 when outside 0-255),
        128 + signal for Signaled (127 when that exceeds 255),
        127 for Undetermined
    """
    if isinstance(status, Exited):
        if 0 <= status.code <= 255:
            return status.code
        return FALLBACK_EXIT_CODE
    if isinstance(status, Signaled):
        code = 128 + status.signal
        if 0 <= code <= 255:
            return code
        return FALLBACK_EXIT_CODE
    return FALLBACK_EXIT_CODE


class ExecutionResult(BaseModel):
    """Outcome of running the monitored command."""

    model_config = ConfigDict(frozen=True)

    output: bytes = Field(
        default=b"",
        description="Merged stdout+stderr (empty when not captured)",
    )
    status: ExitStatus = Field(description="How the process ended")
    elapsed: timedelta = Field(description="Wall-clock run time")

    @property
    def exit_code(self) -> int:
        """Normalized 0-255 exit code."""
        return normalize_exit_status(self.status)

    @property
    def signal(self) -> int | None:
        """Terminating signal, if the process was killed by one."""
        if isinstance(self.status, Signaled):
            return self.status.signal
        return None

    def output_str(self) -> str:
        """Captured output decoded as UTF-8, replacing bad bytes."""
        return self.output.decode("utf-8", errors="replace")


class ReportPayload(BaseModel):
    """Text and status sent with the completion check-in.

    exit_code None means a log-only check-in that does not change
    the check's state; 0 is success and anything else a failure.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    exit_code: int | None = None
