from __future__ import annotations

import logging
from collections import abc
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, get_args, get_origin

from typing_extensions import Self

from diweave.exceptions import DIWeaveNotRegisteredError, DIWeaveUnsupportedContainerError
from diweave.lifetime import Lifetime
from diweave.policies import EmptyCollectionPolicy
from diweave.resolvers.instance_factory import InstanceFactory
from diweave.resolvers.protocol import NextStage, ResolverProtocol

if TYPE_CHECKING:
    from diweave.repository import ResolverRepository

logger = logging.getLogger(__name__)

Materializer = Callable[[Iterable[Any]], Any]

_MATERIALIZERS: dict[type[Any], Materializer] = {
    tuple: tuple,
    abc.Iterable: tuple,
    abc.Collection: tuple,
    abc.Sequence: tuple,
    abc.Reversible: tuple,
    list: list,
    abc.MutableSequence: list,
    set: set,
    abc.MutableSet: set,
    frozenset: frozenset,
    abc.Set: frozenset,
}
_IMMUTABLE_MATERIALIZERS = (tuple, frozenset)


def get_element_type(requested: Any) -> Any | None:
    """Return ``T`` when ``requested`` is shaped like a collection of ``T``.

    A request qualifies when its origin is an ``Iterable`` subclass with a
    sole type argument, or is the variadic ``tuple[T, ...]``. Anything else
    returns ``None``.
    """
    origin = get_origin(requested)
    if not isinstance(origin, type) or not issubclass(origin, abc.Iterable):
        return None
    args = get_args(requested)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
            return args[0]
        return None
    if len(args) != 1:
        return None
    return args[0]


class EnumerableResolver:
    """Resolver aggregating every registration of an element type.

    ``build()`` picks one of three strategies from the element resolvers'
    lifetimes: all global elements are computed once and shared, all local
    elements are recomputed on every call, and mixed lists only redo the
    local entries. Elements keep registration order.
    """

    def __init__(self, requested: Any, repository: ResolverRepository) -> None:
        element = get_element_type(requested)
        if element is None:
            raise DIWeaveUnsupportedContainerError(requested)
        self._requested = requested
        self._element = element
        self._repository = repository
        self._materialize = _MATERIALIZERS.get(get_origin(requested))
        self._resolvers: tuple[ResolverProtocol, ...] = repository.get_resolvers(element)
        self._lock = repository.lock_mode.new_lock()
        self._factory: InstanceFactory | None = None

    @property
    def element_type(self) -> Any:
        return self._element

    @property
    def lifetime(self) -> Lifetime:
        if self._materialize in _IMMUTABLE_MATERIALIZERS and all(
            resolver.lifetime is Lifetime.GLOBAL for resolver in self._resolvers
        ):
            return Lifetime.GLOBAL
        return Lifetime.LOCAL

    def build(self) -> Self:
        if self._factory is not None:
            return self
        with self._lock:
            if self._factory is None:
                self._factory = self._compile().build()
        return self

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        factory = self._factory
        if factory is None:
            factory = self.build()._factory
        return factory.resolve()  # type: ignore[union-attr]

    def _compile(self) -> InstanceFactory:
        materialize = self._materialize
        if materialize is None:
            raise DIWeaveUnsupportedContainerError(self._requested)
        if not self._resolvers and (
            self._repository.empty_collection_policy is EmptyCollectionPolicy.ERROR
        ):
            raise DIWeaveNotRegisteredError(self._element)

        for resolver in self._resolvers:
            resolver.build()

        global_count = sum(
            1 for resolver in self._resolvers if resolver.lifetime is Lifetime.GLOBAL
        )
        if global_count == len(self._resolvers):
            strategy, producer = "constant", self._constant_producer(materialize)
        elif global_count == 0:
            strategy, producer = "local", self._local_producer(materialize)
        else:
            strategy, producer = "mixed", self._mixed_producer(materialize)
        logger.info(
            "Compiled %s enumerable strategy for %r over %d resolvers",
            strategy,
            self._requested,
            len(self._resolvers),
        )
        return InstanceFactory(producer, self.lifetime, lock_mode=self._repository.lock_mode)

    def _constant_producer(self, materialize: Materializer) -> Callable[[], Any]:
        constants = tuple(resolver.resolve() for resolver in self._resolvers)
        if materialize in _IMMUTABLE_MATERIALIZERS:
            value = materialize(constants)
            return lambda: value
        return lambda: materialize(constants)

    def _local_producer(self, materialize: Materializer) -> Callable[[], Any]:
        resolves = tuple(resolver.resolve for resolver in self._resolvers)
        return lambda: materialize([resolve() for resolve in resolves])

    def _mixed_producer(self, materialize: Materializer) -> Callable[[], Any]:
        template = [
            resolver.resolve() if resolver.lifetime is Lifetime.GLOBAL else None
            for resolver in self._resolvers
        ]
        deferred = tuple(
            (index, resolver.resolve)
            for index, resolver in enumerate(self._resolvers)
            if resolver.lifetime is not Lifetime.GLOBAL
        )

        def produce() -> Any:
            elements = list(template)
            for index, resolve in deferred:
                elements[index] = resolve()
            return materialize(elements)

        return produce

    def __repr__(self) -> str:
        return f"EnumerableResolver({self._requested!r})"
