"""Allow running as ``python -m taskmon``."""

from taskmon.cli import main

main()
