from __future__ import annotations

import threading
from collections.abc import Hashable
from typing import Any, TypeAlias

from diweave.exceptions import DIWeaveNotRegisteredError
from diweave.lock_mode import LockMode
from diweave.policies import EmptyCollectionPolicy
from diweave.resolvers.decorator_chain import DecoratorChainResolver
from diweave.resolvers.enumerable import EnumerableResolver, get_element_type
from diweave.resolvers.protocol import ResolverProtocol

Registration: TypeAlias = "tuple[Hashable | None, ResolverProtocol]"


class ResolverRepository:
    """Index resolvers by contract type and optional dependency key.

    Registrations are append-only: registering a ``(contract, key)`` pair
    again adds a decorator-chain stage instead of replacing the earlier
    resolver. Reads take no lock; each contract's registrations are stored
    as an immutable tuple replaced on write.

    The repository performs no construction. Derived resolvers (decorator
    chains, collections) are created on first lookup and cached until the
    next registration.
    """

    def __init__(
        self,
        *,
        lock_mode: LockMode = LockMode.THREAD,
        empty_collection_policy: EmptyCollectionPolicy = EmptyCollectionPolicy.EMPTY,
    ) -> None:
        self.lock_mode = lock_mode
        self.empty_collection_policy = empty_collection_policy
        self._registrations: dict[Any, tuple[Registration, ...]] = {}
        self._derived: dict[tuple[Any, Hashable | None], ResolverProtocol] = {}
        self._lock = threading.Lock()

    def register(
        self,
        contract: Any,
        resolver: ResolverProtocol,
        key: Hashable | None = None,
    ) -> None:
        """Append ``resolver`` to the registrations of ``contract``.

        Args:
            contract: Type callers resolve against.
            resolver: Resolver producing values for the contract.
            key: Optional dependency key distinguishing this registration.

        """
        with self._lock:
            registrations = self._registrations.get(contract, ())
            self._registrations[contract] = (*registrations, (key, resolver))
            self._derived.clear()

    def is_registered(self, contract: Any, key: Hashable | None = None) -> bool:
        return any(k == key for k, _ in self._registrations.get(contract, ()))

    def registered_pairs(self) -> list[tuple[Any, Hashable | None]]:
        """Return every registered ``(contract, key)`` pair once, in registration order."""
        pairs = dict.fromkeys(
            (contract, key)
            for contract, registrations in list(self._registrations.items())
            for key, _ in registrations
        )
        return list(pairs)

    def get_resolvers(self, contract: Any) -> tuple[ResolverProtocol, ...]:
        """Return every resolver of ``contract`` across keys, in registration order."""
        return tuple(resolver for _, resolver in self._registrations.get(contract, ()))

    def get_resolver(self, contract: Any, key: Hashable | None = None) -> ResolverProtocol:
        """Return the resolver for ``(contract, key)``.

        Several registrations under the same pair resolve through a decorator
        chain. An unregistered collection type such as ``list[T]`` resolves
        through an enumerable resolver over the registrations of ``T``.

        Raises:
            DIWeaveNotRegisteredError: nothing can resolve the request.

        """
        derived = self._derived.get((contract, key))
        if derived is not None:
            return derived

        stages = [resolver for k, resolver in self._registrations.get(contract, ()) if k == key]
        if len(stages) == 1:
            return stages[0]
        if not stages and (key is not None or get_element_type(contract) is None):
            raise DIWeaveNotRegisteredError(contract, key)

        # Derived resolvers snapshot registrations and must not outlive a register().
        with self._lock:
            derived = self._derived.get((contract, key))
            if derived is None:
                derived = self._derive(contract, key)
                self._derived[contract, key] = derived
            return derived

    def _derive(self, contract: Any, key: Hashable | None) -> ResolverProtocol:
        stages = [resolver for k, resolver in self._registrations.get(contract, ()) if k == key]
        if len(stages) == 1:
            return stages[0]
        if stages:
            return DecoratorChainResolver(stages)
        return EnumerableResolver(contract, self)
