from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from diweave.dependencies import DependenciesExtractor, ParameterInfo
from diweave.exceptions import (
    DIWeaveInvalidRegistrationError,
    DIWeaveMissingDependencyError,
    DIWeaveNotRegisteredError,
)
from diweave.lifetime import Lifetime
from diweave.resolvers.plans import ArgumentSource, InstantiationPlan, PlanArgument, compile_plan
from diweave.resolvers.protocol import NextStage

if TYPE_CHECKING:
    from diweave.repository import ResolverRepository

logger = logging.getLogger(__name__)

_DEFAULT_EXTRACTOR = DependenciesExtractor()


class ObjectBuilder:
    """Resolver constructing a concrete type through its single constructor.

    ``build()`` looks every constructor parameter up in the repository,
    builds those resolvers, and compiles an instantiation plan: global
    dependencies are baked in as constants, local ones are called per
    resolution. A global builder additionally constructs its instance during
    ``build()`` and returns it from every ``resolve()``.

    ``inner_parameter`` names the parameter receiving the previous
    decorator-chain stage, which turns the built type into a decorator.
    """

    def __init__(  # noqa: PLR0913
        self,
        target: type[Any],
        repository: ResolverRepository,
        *,
        lifetime: Lifetime = Lifetime.LOCAL,
        dependency_keys: Mapping[str, Hashable] | None = None,
        inner_parameter: str | None = None,
        extractor: DependenciesExtractor | None = None,
    ) -> None:
        if inner_parameter is not None and lifetime is Lifetime.GLOBAL:
            msg = (
                f"{target.__qualname__} decorates through '{inner_parameter}' "
                "and cannot have a global lifetime."
            )
            raise DIWeaveInvalidRegistrationError(msg)
        self._target = target
        self._repository = repository
        self._lifetime = lifetime
        self._dependency_keys = dict(dependency_keys or {})
        self._inner_parameter = inner_parameter
        self._extractor = extractor or _DEFAULT_EXTRACTOR
        self._lock = repository.lock_mode.new_lock()
        self._plan: InstantiationPlan | None = None
        self._instance: Any = None

    @property
    def target(self) -> type[Any]:
        return self._target

    @property
    def lifetime(self) -> Lifetime:
        return self._lifetime

    def build(self) -> Self:
        if self._plan is not None:
            return self
        with self._lock:
            if self._plan is None:
                plan = self._compile()
                if self._lifetime is Lifetime.GLOBAL:
                    self._instance = plan(None)
                self._plan = plan
        return self

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        plan = self._plan
        if plan is None:
            self.build()
            plan = self._plan
        if self._lifetime is Lifetime.GLOBAL:
            return self._instance
        return plan(next_stage)  # type: ignore[misc]

    def _compile(self) -> InstantiationPlan:
        parameters = self._extractor.get_parameters(self._target)
        names = {parameter.name for parameter in parameters}
        if self._inner_parameter is not None and self._inner_parameter not in names:
            msg = f"{self._target.__qualname__} has no parameter '{self._inner_parameter}'"
            raise DIWeaveInvalidRegistrationError(msg)
        unknown_keys = set(self._dependency_keys) - names
        if unknown_keys:
            msg = f"{self._target.__qualname__} has no parameters {sorted(unknown_keys)}"
            raise DIWeaveInvalidRegistrationError(msg)

        arguments = [
            argument
            for parameter in parameters
            if (argument := self._plan_argument(parameter)) is not None
        ]
        constants = sum(1 for argument in arguments if argument.source is ArgumentSource.CONSTANT)
        logger.info(
            "Compiled instantiation plan for %s: %d arguments, %d constants",
            self._target.__qualname__,
            len(arguments),
            constants,
        )
        return compile_plan(self._target, arguments)

    def _plan_argument(self, parameter: ParameterInfo) -> PlanArgument | None:
        positional = parameter.positional_only
        if parameter.name == self._inner_parameter:
            return PlanArgument(parameter.name, positional, ArgumentSource.INNER)

        key = self._dependency_keys.get(parameter.name, parameter.key)
        try:
            if parameter.dependency is None:
                raise DIWeaveNotRegisteredError(None, key)
            resolver = self._repository.get_resolver(parameter.dependency, key)
        except DIWeaveNotRegisteredError as e:
            if not parameter.has_default:
                raise DIWeaveMissingDependencyError(
                    self._target,
                    parameter.name,
                    parameter.dependency,
                    key,
                ) from e
            if not positional:
                return None
            # Later positional-only arguments need this slot filled.
            return PlanArgument(
                parameter.name, positional, ArgumentSource.CONSTANT, parameter.default,
            )

        resolver.build()
        if resolver.lifetime is Lifetime.GLOBAL:
            value = resolver.resolve()
            return PlanArgument(parameter.name, positional, ArgumentSource.CONSTANT, value)
        return PlanArgument(parameter.name, positional, ArgumentSource.DEFERRED, resolver.resolve)

    def __repr__(self) -> str:
        return f"ObjectBuilder({self._target.__qualname__}, {self._lifetime})"
