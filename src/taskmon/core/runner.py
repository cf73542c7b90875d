"""Run the monitored command and distill its outcome."""

import subprocess
import time
from collections.abc import Sequence
from datetime import timedelta

from taskmon import PROGRAM_NAME
from taskmon.core.log import logger
from taskmon.core.result import (
    ExecutionResult,
    Exited,
    ExitStatus,
    Signaled,
    Undetermined,
)

# Longest slice of captured output echoed in verbose diagnostics
MAX_STRING_TO_LOG = 1000


def truncate_str(s: str, max_len: int) -> str:
    """Truncate a string for display.

    Args:
        s: String to shorten
        max_len: Maximum length of the result

    Returns:
        s unchanged if it fits, otherwise its first max_len - 3
        characters followed by "..."

    Examples:
        truncate_str("much too long", 10) → "much to..."
    """
    if len(s) > max_len:
        return s[:max_len - 3] + "..."
    return s


def _status_from_returncode(returncode: int) -> ExitStatus:
    """Map a Popen returncode onto an exit status.

    Popen reports death by signal N as -N.
    """
    if returncode < 0:
        return Signaled(signal=-returncode)
    return Exited(code=returncode)


def execute(
    command: Sequence[str],
    capture: bool = True,
    verbose: bool = False,
) -> ExecutionResult:
    """Run a command, distilling every outcome to an ExecutionResult.

    stderr is merged into stdout so the captured output reads the
    way it would in a terminal. Failing to launch the command is
    not an error: it yields an Undetermined status (exit code 127)
    with a short diagnostic as the output (when capturing), so the
    failure can still be reported.

    Args:
        command: Program followed by its arguments
        capture: Buffer the output; when False it is discarded
        verbose: Log the command and its outcome

    Returns:
        ExecutionResult with output, exit status and elapsed time
    """
    if verbose:
        logger.debug("About to run: {command}", command=list(command))

    stdout = subprocess.PIPE if capture else subprocess.DEVNULL

    start = time.monotonic()
    try:
        with subprocess.Popen(
            list(command),
            stdout=stdout,
            stderr=subprocess.STDOUT,
        ) as process:
            output, _ = process.communicate()
        status = _status_from_returncode(process.returncode)
        error = None
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        output = None
        status = Undetermined()
        error = e
    elapsed = timedelta(seconds=time.monotonic() - start)

    if error is not None:
        if verbose:
            logger.debug(
                "Failed! {error} runtime:{elapsed}",
                error=repr(error),
                elapsed=str(elapsed),
            )
        message = f"{PROGRAM_NAME}: Command failed: {error}"
        return ExecutionResult(
            output=message.encode("utf-8") if capture else b"",
            status=status,
            elapsed=elapsed,
        )

    result = ExecutionResult(
        output=output or b"",
        status=status,
        elapsed=elapsed,
    )

    if verbose:
        logger.debug(
            "stdout+stderr:[{output}] exit:{status} runtime:{elapsed}",
            output=truncate_str(result.output_str(), MAX_STRING_TO_LOG),
            status=repr(status),
            elapsed=str(elapsed),
        )

    return result
