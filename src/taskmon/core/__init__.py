"""Execution, formatting, configuration and logging for task-mon."""
