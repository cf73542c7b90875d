"""Build the report text sent with the completion check-in."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field

from taskmon.core.result import ExecutionResult, ReportPayload

# Ping endpoints keep at most this many bytes of a request body
# (10000 bytes, not 10KiB)
MAX_BYTES_TO_POST = 10000

REPLACEMENT_CHAR = "\ufffd"


class FormatOptions(BaseModel):
    """How to turn an ExecutionResult into a report."""

    model_config = ConfigDict(frozen=True)

    detailed: bool = Field(
        default=False,
        description="Wrap output with the command line, exit code and duration",
    )
    environment: dict[str, str] | None = Field(
        default=None,
        description=(
            "Environment snapshot dumped ahead of the detailed block; "
            "ignored unless detailed is set"
        ),
    )
    head: bool = Field(
        default=False,
        description="Keep the first bytes of oversized output, not the last",
    )
    log_only: bool = Field(
        default=False,
        description="Report without an exit code (log-only check-in)",
    )
    max_bytes: int = Field(
        default=MAX_BYTES_TO_POST,
        description="Byte budget of the report text",
    )


def format_duration(elapsed: timedelta) -> str:
    """Render a duration, e.g. "12.345ms" or "2.500s"."""
    seconds = elapsed.total_seconds()
    if seconds < 1:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds:.3f}s"


def format_environment(environment: Mapping[str, str]) -> str:
    """One KEY=VALUE line per variable."""
    return "\n".join(f"{key}={value}" for key, value in environment.items())


def truncate_bytes(text: str, max_bytes: int, head: bool = False) -> str:
    """Cut text down to max_bytes of UTF-8 without splitting a character.

    The cut bytes are decoded with replacement characters, and any
    replacement characters at the cut edge are stripped since each
    one is three bytes and would push the text over budget.

    Args:
        text: Text to truncate
        max_bytes: Byte budget
        head: Keep the first bytes instead of the last

    Returns:
        text unchanged if it fits, otherwise the kept bytes decoded
    """
    data = text.encode("utf-8")
    if len(data) <= max_bytes:
        return text

    if head:
        kept = data[:max_bytes].decode("utf-8", errors="replace")
        return kept.rstrip(REPLACEMENT_CHAR)

    kept = data[len(data) - max_bytes:].decode("utf-8", errors="replace")
    return kept.lstrip(REPLACEMENT_CHAR)


def format_report(
    result: ExecutionResult,
    command: Sequence[str],
    options: FormatOptions | None = None,
) -> ReportPayload:
    """Turn an execution result into the completion report.

    Pure function: everything it needs, including the environment
    snapshot, comes in through its arguments.

    Args:
        result: Outcome of the monitored command
        command: Command line that was run
        options: Formatting options (defaults when None)

    Returns:
        ReportPayload whose text fits within options.max_bytes
    """
    options = options or FormatOptions()
    output = result.output_str()

    if options.detailed:
        # Not shell-quoted; this is a human-readable echo of the command
        output = (
            f"$ {' '.join(command)} 2>&1\n{output}\n\n"
            f"Exit Code: {result.exit_code}\n"
            f"Duration: {format_duration(result.elapsed)}"
        )
        if options.environment is not None:
            output = f"{format_environment(options.environment)}\n{output}"

    text = truncate_bytes(output, options.max_bytes, head=options.head)
    exit_code = None if options.log_only else result.exit_code
    return ReportPayload(text=text, exit_code=exit_code)
