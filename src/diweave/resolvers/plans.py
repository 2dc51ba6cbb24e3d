"""Compiled instantiation plans.

Plans are created once per object builder from the dependency graph. Global
dependencies are folded into constants, local ones are kept as bound
``resolve`` callables, so calling a plan performs no lookups or reflection.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import Any, Protocol

from diweave.resolvers.protocol import NextStage


class ArgumentSource(Enum):
    """Where a plan argument gets its value from."""

    CONSTANT = auto()
    """A value computed at build time."""

    DEFERRED = auto()
    """A zero-argument callable invoked on every plan call."""

    INNER = auto()
    """The decorator continuation passed to the plan call."""


@dataclass(frozen=True, slots=True)
class PlanArgument:
    name: str
    positional: bool
    source: ArgumentSource
    value: Any = None


class InstantiationPlan(Protocol):
    """Protocol for compiled plans."""

    def __call__(self, next_stage: NextStage | None) -> Any:
        """Construct and return a new instance."""
        ...


class NoArgumentsPlan:
    """Plan for types with no injected parameters - direct instantiation."""

    __slots__ = ("_target",)

    def __init__(self, target: Callable[..., Any]) -> None:
        self._target = target

    def __call__(self, next_stage: NextStage | None) -> Any:
        return self._target()


class ConstantArgumentsPlan:
    """Plan for types whose every argument is known at build time."""

    __slots__ = ("_call",)

    def __init__(
        self,
        target: Callable[..., Any],
        args: Sequence[Any],
        kwargs: dict[str, Any],
    ) -> None:
        self._call = partial(target, *args, **kwargs)

    def __call__(self, next_stage: NextStage | None) -> Any:
        return self._call()


class ArgumentsPlan:
    """Plan mixing constants with per-call resolution."""

    __slots__ = ("_keyword", "_positional", "_target")

    def __init__(self, target: Callable[..., Any], arguments: Sequence[PlanArgument]) -> None:
        self._target = target
        self._positional = tuple(
            (argument.source, argument.value) for argument in arguments if argument.positional
        )
        self._keyword = tuple(
            (argument.name, argument.source, argument.value)
            for argument in arguments
            if not argument.positional
        )

    def __call__(self, next_stage: NextStage | None) -> Any:
        args = [_materialize(source, value, next_stage) for source, value in self._positional]
        kwargs = {
            name: _materialize(source, value, next_stage) for name, source, value in self._keyword
        }
        return self._target(*args, **kwargs)


def _materialize(source: ArgumentSource, value: Any, next_stage: NextStage | None) -> Any:
    if source is ArgumentSource.CONSTANT:
        return value
    if source is ArgumentSource.DEFERRED:
        return value()
    return None if next_stage is None else next_stage()


def compile_plan(
    target: Callable[..., Any],
    arguments: Sequence[PlanArgument],
) -> InstantiationPlan:
    """Pick the cheapest plan able to call ``target`` with ``arguments``."""
    if not arguments:
        return NoArgumentsPlan(target)
    if all(argument.source is ArgumentSource.CONSTANT for argument in arguments):
        return ConstantArgumentsPlan(
            target,
            [argument.value for argument in arguments if argument.positional],
            {argument.name: argument.value for argument in arguments if not argument.positional},
        )
    return ArgumentsPlan(target, arguments)
