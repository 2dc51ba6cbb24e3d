from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from enum import Enum
from typing import Any


class LockMode(Enum):
    """Select locking behavior for resolver builds.

    Builds compile an instantiation plan once and, for global resolvers,
    compute the shared value once. The lock guards that one-time step.
    """

    THREAD = "thread"
    """Guard builds with a per-resolver ``threading.Lock`` and a double-checked read."""

    NONE = "none"
    """Disable build locking. Only safe when builds happen on a single thread."""

    def new_lock(self) -> AbstractContextManager[Any]:
        """Return a fresh lock honoring this mode."""
        if self is LockMode.THREAD:
            return threading.Lock()
        return nullcontext()
