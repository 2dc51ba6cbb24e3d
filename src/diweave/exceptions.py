from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Any, get_origin

if TYPE_CHECKING:
    from diweave.scope import Scope


def _describe(value: Any) -> str:
    if isinstance(value, type) and get_origin(value) is None:
        return value.__qualname__
    return repr(value)


class DIWeaveError(Exception):
    """Represent a base class for all DIWeave-specific failures.

    Catch this type when you want to handle any DIWeave error path without
    matching each concrete exception class individually.
    """


class DIWeaveInvalidRegistrationError(DIWeaveError):
    """Signal contradictory registration arguments.

    Raised by ``ResolutionEngine.register_*`` and by resolver constructors,
    for example when a global resolver is asked to take a decorator
    continuation or when an implementation does not subclass its contract.
    """


class DIWeaveResolveError(DIWeaveError):
    """Represent a base class for failures while looking up resolvers."""


class DIWeaveNotRegisteredError(DIWeaveResolveError):
    """Signal that a contract (optionally under a dependency key) has no resolver.

    Typical fixes include registering the contract, or passing the key the
    contract was registered under.
    """

    def __init__(self, contract: Any, key: Hashable | None = None) -> None:
        self.contract = contract
        self.key = key
        msg = f"{_describe(contract)} is not registered"
        if key is not None:
            msg = f"{msg} under key {key!r}"
        super().__init__(msg)


class DIWeaveMissingDependencyError(DIWeaveResolveError):
    """Signal that a constructor parameter of a built type has no resolver.

    Raised at build time, chained from the underlying
    ``DIWeaveNotRegisteredError`` when one exists.
    """

    def __init__(
        self,
        target: type[Any],
        parameter_name: str,
        parameter_type: Any,
        key: Hashable | None = None,
    ) -> None:
        self.target = target
        self.parameter_name = parameter_name
        self.parameter_type = parameter_type
        self.key = key
        dependency = "no annotation" if parameter_type is None else _describe(parameter_type)
        msg = (
            f"Cannot build {_describe(target)}: parameter '{parameter_name}' "
            f"({dependency}) has no registered resolver"
        )
        if key is not None:
            msg = f"{msg} under key {key!r}"
        super().__init__(msg)


class DIWeaveUnsupportedContainerError(DIWeaveResolveError):
    """Signal a collection request whose container type cannot be materialized.

    Supported shapes are tuples (``Iterable``, ``Sequence``, ``Collection``,
    ``tuple[T, ...]``), lists, sets and frozensets.
    """

    def __init__(self, requested: Any) -> None:
        self.requested = requested
        super().__init__(f"Cannot materialize resolved elements into {requested!r}")


class DIWeaveConstructionError(DIWeaveError):
    """Signal that a target type cannot be turned into an instantiation plan."""

    reason = "cannot be constructed"

    def __init__(self, target: Any, detail: str | None = None) -> None:
        self.target = target
        msg = f"{_describe(target)} {self.reason}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class DIWeaveNoConstructorError(DIWeaveConstructionError):
    """Signal a type whose constructor signature cannot be inspected."""

    reason = "has no inspectable constructor"


class DIWeaveAmbiguousConstructorError(DIWeaveConstructionError):
    """Signal a type exposing several constructor overloads.

    Build a type with a single ``__init__`` signature, or register a factory
    that picks the overload explicitly.
    """

    reason = "has more than one constructor overload"


class DIWeaveNotInstantiableError(DIWeaveConstructionError):
    """Signal an abstract class, protocol or non-class target."""

    reason = "is not instantiable"


class DIWeaveScopeError(DIWeaveError):
    """Represent a base class for scope lifecycle failures."""


class DIWeaveScopeClosedError(DIWeaveScopeError):
    """Signal use of a scope after ``close()``."""

    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        super().__init__(f"{scope!r} is closed")


class DIWeaveNoActiveScopeError(DIWeaveScopeError):
    """Signal a scope-cached resolution while no scope is open.

    Typical fix is opening a scope first, e.g.
    ``with engine.open_scope(): engine.resolve(Service)``.
    """
