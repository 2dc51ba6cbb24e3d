from __future__ import annotations

import inspect
import logging
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from typing_extensions import get_overloads

from diweave._internal.type_checks import is_instantiable_class
from diweave.exceptions import (
    DIWeaveAmbiguousConstructorError,
    DIWeaveConstructionError,
    DIWeaveNoConstructorError,
    DIWeaveNotInstantiableError,
)
from diweave.markers import Component

logger = logging.getLogger(__name__)

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """Information about a constructor parameter."""

    name: str
    dependency: Any | None
    """Parameter contract type, ``None`` when the parameter is not annotated."""
    key: Hashable | None
    """Dependency key taken from ``Component`` metadata."""
    positional_only: bool
    default: Any = inspect.Parameter.empty

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


class DependenciesExtractor:
    """Extract constructor dependencies of concrete classes.

    Results are cached per class; extraction runs once per target at build
    time so resolution never inspects signatures or annotations.
    """

    def __init__(self) -> None:
        self._cache: dict[type[Any], tuple[ParameterInfo, ...]] = {}

    def get_parameters(self, target: Any) -> tuple[ParameterInfo, ...]:
        """Return the injectable parameters of ``target``'s single constructor.

        ``*args`` and ``**kwargs`` are not injectable and are left out.

        Args:
            target: Concrete class to inspect.

        Raises:
            DIWeaveNotInstantiableError: ``target`` is abstract, a protocol, or not a class.
            DIWeaveAmbiguousConstructorError: ``__init__`` declares overloads.
            DIWeaveNoConstructorError: the constructor signature cannot be inspected.

        """
        cached = self._cache.get(target)
        if cached is not None:
            return cached

        if not is_instantiable_class(target):
            raise DIWeaveNotInstantiableError(target)

        init = getattr(target, "__init__", None)
        if inspect.isfunction(init) and len(get_overloads(init)) > 1:
            raise DIWeaveAmbiguousConstructorError(target)

        try:
            signature = inspect.signature(target)
        except (TypeError, ValueError) as e:
            raise DIWeaveNoConstructorError(target, str(e)) from e

        hints = self._get_init_type_hints(target, init)
        result = tuple(
            self._describe(name, parameter, hints)
            for name, parameter in signature.parameters.items()
            if parameter.kind not in _SKIPPED_KINDS
        )
        self._cache[target] = result
        return result

    def _describe(
        self,
        name: str,
        parameter: inspect.Parameter,
        hints: dict[str, Any],
    ) -> ParameterInfo:
        dependency, key = split_component(hints.get(name))
        return ParameterInfo(
            name=name,
            dependency=dependency,
            key=key,
            positional_only=parameter.kind is inspect.Parameter.POSITIONAL_ONLY,
            default=parameter.default,
        )

    def _get_init_type_hints(self, target: type[Any], init: Any) -> dict[str, Any]:
        if not inspect.isfunction(init):
            return {}
        try:
            return get_type_hints(init, include_extras=True)
        except NameError as e:
            logger.warning(
                "'%s' name error retrieving %s constructor type hints",
                e.name,
                target.__qualname__,
            )
            raise DIWeaveConstructionError(target, f"unresolvable annotation {e.name!r}") from e


def split_component(hint: Any) -> tuple[Any, Hashable | None]:
    """Split ``Annotated[T, Component(key)]`` into ``(T, key)``.

    Plain hints return ``(hint, None)``. Other ``Annotated`` metadata is
    dropped from the contract.
    """
    if get_origin(hint) is not Annotated:
        return hint, None
    inner, *metadata = get_args(hint)
    for marker in metadata:
        if isinstance(marker, Component):
            return inner, marker.value
    return inner, None
