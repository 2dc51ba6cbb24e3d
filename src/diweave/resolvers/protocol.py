from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeAlias

from diweave.lifetime import Lifetime

NextStage: TypeAlias = Callable[[], Any]
"""Continuation resolving the previous stage of a decorator chain."""


def default_result() -> None:
    """Continuation handed to the innermost stage of a decorator chain."""
    return


class ResolverProtocol(Protocol):
    """Protocol for a resolver producing values of one contract."""

    @property
    def lifetime(self) -> Lifetime:
        """Lifetime of the values produced by this resolver."""

    def build(self) -> ResolverProtocol:
        """Compile the resolver once and return it.

        Builds are idempotent: only the first call does work, including under
        concurrent first calls.
        """

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        """Return an instance.

        Args:
            next_stage: Continuation resolving the previous decorator-chain stage.
                Resolvers that do not decorate ignore it.

        """
