"""task-mon - run a command and report its outcome to a ping endpoint."""

__version__ = "0.1.0"

PROGRAM_NAME = "task-mon"
