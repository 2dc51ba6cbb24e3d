from enum import Enum, auto


class Lifetime(Enum):
    """Define how often a resolver computes its value."""

    GLOBAL = auto()
    """Compute once during build and reuse forever.

    Dependents inline the value into their compiled plans as a constant.
    """

    LOCAL = auto()
    """Compute a fresh value on every resolution call.

    Combine with ``ScopeSharing`` to cache per unit of work instead.
    """
