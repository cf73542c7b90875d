"""Base classes for configuration and runtime models.

- Closeable Protocol for resource cleanup
- BaseCloseable for automatic cleanup cascade
- BaseConfig for configuration sections
- BaseState for per-invocation runtime state

Kept apart from config.py and log.py so both can import them.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

# ============================================================
# CLOSEABLE PROTOCOL AND BASE CLASS
# ============================================================

@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Clean up resources."""
        ...


class BaseCloseable(BaseModel):
    """Base class providing automatic cleanup of Closeable children.

    Any model inheriting from BaseCloseable is a context manager
    and, on close(), calls close() on every field value that has
    one. A failing child does not stop the others from closing.

    Cleanup cascade for one invocation:
    Invocation.__exit__() → CheckinClient.close()
    Logger.__exit__() → Sink.close()
    """

    def close(self):
        """Close all closeable child objects.

        Errors are reported on stderr and do not interrupt the
        cascade.
        """
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    msg = f"Warning: Error closing {field_name}: {e}"
                    print(msg, file=sys.stderr)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        """Context manager exit - close all children."""
        self.close()
        return False  # Don't suppress exceptions


# ============================================================
# BASE CLASSES (semantic markers for readers)
# ============================================================

class BaseConfig(BaseCloseable):
    """Base class for configuration sections (CLI/env/YAML)."""
    pass


class BaseState(BaseCloseable):
    """Base class for runtime state mutated while an invocation
    runs."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
