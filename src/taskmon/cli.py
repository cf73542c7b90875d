#!/usr/bin/env python3
"""task-mon CLI - run a command and report its outcome."""

from __future__ import annotations

import contextlib
import sys

from pydantic import ValidationError
from pydantic_settings import CliApp

from taskmon import PROGRAM_NAME
from taskmon.client import CheckinError
from taskmon.core.config import Config
from taskmon.core.log import ConsoleSink, FileSink, logger, setup_logger
from taskmon.workflow import run_invocation

COMMAND_SEPARATOR = "--"


class CliConfig(Config):
    """Run a command and report its outcome to a Healthchecks.io
    ping endpoint.

    Identify the check with --uuid, or with --slug plus a project
    --ping-key. Everything after -- is the command to run.

    Configuration sources (in priority order):
    1. Command-line arguments
    2. Environment variables (HEALTHCHECKS_PING_KEY=...)
    3. ./task-mon.yaml
    4. task-mon.yaml in the user config directory
    """

    def cli_cmd(self):
        """Run the invocation once the configuration is valid.

        Exits 0 when the outcome was reported, 1 when the completion
        ping could not be delivered.
        """
        level = "debug" if self.verbose else "warn"
        file_sink = FileSink()
        if self.log_file is not None:
            # A user-given path is literal, not a {name} template
            file_sink = FileSink(
                enabled=True,
                path=str(self.log_file).replace("{", "{{").replace("}", "}}"),
            )
        setup_logger(
            name=self.check_name,
            level=level,
            console=ConsoleSink(level=level),
            file=file_sink,
        )

        with logger:
            try:
                run_invocation(self)
            except CheckinError as e:
                logger.error(
                    "Failed to reach the ping endpoint: {error}",
                    error=str(e),
                )
                raise SystemExit(1) from e
        raise SystemExit(0)


def split_command(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split arguments at the first -- into options and command.

    Examples:
        split_command(["--uuid", "x", "--", "ls", "--", "-l"])
        → (["--uuid", "x"], ["ls", "--", "-l"])
    """
    if COMMAND_SEPARATOR not in argv:
        return list(argv), []
    index = argv.index(COMMAND_SEPARATOR)
    return list(argv[:index]), list(argv[index + 1:])


def main(argv: list[str] | None = None):
    """Main entry point for CLI."""
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        # No arguments at all, show help; argparse exits 0 after it
        with contextlib.suppress(SystemExit):
            CliApp.run(CliConfig, cli_args=["--help"])
        sys.exit(1)

    options, command = split_command(argv)
    try:
        CliApp.run(CliConfig, cli_args=options, command=command)
    except ValidationError as e:
        for error in e.errors():
            message = error["msg"].removeprefix("Value error, ")
            location = ".".join(str(part) for part in error["loc"])
            if location:
                message = f"{location}: {message}"
            print(f"{PROGRAM_NAME}: {message}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
