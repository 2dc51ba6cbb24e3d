from enum import Enum


class EmptyCollectionPolicy(str, Enum):
    """Policy for collection requests whose element type has no registrations."""

    EMPTY = "empty"
    """Resolve to an empty collection."""

    ERROR = "error"
    """Raise ``DIWeaveNotRegisteredError`` for the element type."""


class ScopeSharing(str, Enum):
    """Policy for caching a resolver's values in the active scope."""

    PER_SCOPE = "per_scope"
    """Cache in the active scope; nested scopes get their own instance."""

    TRANSPARENT = "transparent"
    """Cache in the root of the active scope chain; nested scopes share it."""
