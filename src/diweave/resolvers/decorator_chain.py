from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from typing_extensions import Self

from diweave.lifetime import Lifetime
from diweave.resolvers.protocol import NextStage, ResolverProtocol, default_result


class DecoratorChainResolver:
    """Compose several resolvers registered for one contract.

    The first stage is the base. Every later stage receives a continuation
    resolving the stage before it and may call it any number of times, or
    ignore it to fully override the earlier stages. Resolving the chain
    returns the last stage's result.

    Building needs no lock of its own: it only builds the stages, which
    guard themselves.
    """

    def __init__(self, stages: Sequence[ResolverProtocol]) -> None:
        self._stages = tuple(stages)
        self._get = self._compose()

    @property
    def stages(self) -> tuple[ResolverProtocol, ...]:
        return self._stages

    @property
    def lifetime(self) -> Lifetime:
        # A global stage never consults its continuation, so the outermost
        # stage alone decides whether the chain result is a constant.
        if self._stages and self._stages[-1].lifetime is Lifetime.GLOBAL:
            return Lifetime.GLOBAL
        return Lifetime.LOCAL

    def build(self) -> Self:
        for stage in self._stages:
            stage.build()
        return self

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        return self._get(next_stage or default_result)

    def _compose(self) -> Callable[[NextStage], Any]:
        stages = self._stages
        if not stages:
            return lambda base_next: base_next()
        if len(stages) == 1:
            (base,) = stages
            return base.resolve
        if len(stages) == 2:  # noqa: PLR2004
            base, outer = stages
            return lambda base_next: outer.resolve(partial(base.resolve, base_next))

        def fold(base_next: NextStage) -> Any:
            current = base_next
            for stage in stages[:-1]:
                current = partial(stage.resolve, current)
            return stages[-1].resolve(current)

        return fold

    def __repr__(self) -> str:
        return f"DecoratorChainResolver({list(self._stages)!r})"
