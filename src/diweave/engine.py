from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping
from typing import Any, TypeVar, overload

from typing_extensions import is_protocol

from diweave._internal.integrations.pydantic_settings import is_pydantic_settings_subclass
from diweave._internal.type_checks import is_runtime_class
from diweave.exceptions import DIWeaveInvalidRegistrationError
from diweave.lifetime import Lifetime
from diweave.lock_mode import LockMode
from diweave.policies import EmptyCollectionPolicy, ScopeSharing
from diweave.repository import ResolverRepository
from diweave.resolvers.instance_factory import InstanceFactory
from diweave.resolvers.object_builder import ObjectBuilder
from diweave.resolvers.protocol import ResolverProtocol
from diweave.resolvers.scoped import ScopedResolver
from diweave.scope import Scope, ScopeService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionEngine:
    """Wire registration descriptors into resolvers and resolve contracts.

    The engine owns one ``ResolverRepository`` and one ``ScopeService``.
    Registration turns a concrete type, a factory, or a pre-built instance
    into the matching resolver; resolution looks the contract up, builds
    the resolver once, and resolves it.

    Examples:
        .. code-block:: python

            engine = ResolutionEngine()
            engine.register_type(Clock, lifetime=Lifetime.GLOBAL)
            engine.register_type(Repository, SqlRepository, scope_sharing=ScopeSharing.PER_SCOPE)

            with engine.open_scope():
                repository = engine.resolve(Repository)

    """

    def __init__(
        self,
        *,
        lock_mode: LockMode = LockMode.THREAD,
        empty_collection_policy: EmptyCollectionPolicy = EmptyCollectionPolicy.EMPTY,
    ) -> None:
        self.repository = ResolverRepository(
            lock_mode=lock_mode,
            empty_collection_policy=empty_collection_policy,
        )
        self.scopes = ScopeService()

    def register_type(  # noqa: PLR0913
        self,
        contract: Any,
        implementation: type[Any] | None = None,
        *,
        key: Hashable | None = None,
        lifetime: Lifetime = Lifetime.LOCAL,
        scope_sharing: ScopeSharing | None = None,
        dependency_keys: Mapping[str, Hashable] | None = None,
        inner_parameter: str | None = None,
    ) -> ResolverProtocol:
        """Register a concrete type built through its constructor.

        Pydantic settings classes are registered as a global zero-argument
        factory instead: their fields come from the environment.

        Args:
            contract: Type callers resolve against.
            implementation: Concrete class to build. Defaults to ``contract``.
            key: Optional dependency key of this registration.
            lifetime: Lifetime of the built instances.
            scope_sharing: Cache instances in the active scope instead of building per call.
            dependency_keys: Dependency keys for constructor parameters, by parameter name.
            inner_parameter: Parameter receiving the previous decorator-chain stage.

        """
        if implementation is None:
            implementation = contract
        self._validate_implementation(contract, implementation)

        resolver: ResolverProtocol
        if is_pydantic_settings_subclass(implementation):
            resolver = InstanceFactory(
                implementation,
                Lifetime.GLOBAL,
                lock_mode=self.repository.lock_mode,
            )
        else:
            resolver = ObjectBuilder(
                implementation,
                self.repository,
                lifetime=lifetime,
                dependency_keys=dependency_keys,
                inner_parameter=inner_parameter,
            )
        return self._add(contract, resolver, key, scope_sharing)

    def register_factory(  # noqa: PLR0913
        self,
        contract: Any,
        factory: Callable[..., Any],
        *,
        key: Hashable | None = None,
        lifetime: Lifetime = Lifetime.LOCAL,
        scope_sharing: ScopeSharing | None = None,
        accepts_next: bool = False,
    ) -> ResolverProtocol:
        """Register a factory producing instances of ``contract``.

        Args:
            contract: Type callers resolve against.
            factory: Zero-argument callable, or a callable taking the previous
                decorator-chain stage when ``accepts_next`` is set.
            key: Optional dependency key of this registration.
            lifetime: Lifetime of the produced instances.
            scope_sharing: Cache instances in the active scope instead of producing per call.
            accepts_next: Pass the decorator continuation to ``factory``.

        """
        if not callable(factory):
            msg = f"Factory for {contract!r} must be callable, got {factory!r}"
            raise DIWeaveInvalidRegistrationError(msg)
        resolver = InstanceFactory(
            factory,
            lifetime,
            accepts_next=accepts_next,
            lock_mode=self.repository.lock_mode,
        )
        return self._add(contract, resolver, key, scope_sharing)

    def register_instance(
        self,
        contract: Any,
        instance: Any,
        *,
        key: Hashable | None = None,
    ) -> ResolverProtocol:
        """Register a pre-built instance. Instances are always global."""
        return self._add(contract, InstanceFactory.from_instance(instance), key, None)

    def register_resolver(
        self,
        contract: Any,
        resolver: ResolverProtocol,
        *,
        key: Hashable | None = None,
    ) -> ResolverProtocol:
        """Register a custom resolver as is."""
        return self._add(contract, resolver, key, None)

    @overload
    def resolve(self, contract: type[T], key: Hashable | None = None) -> T: ...

    @overload
    def resolve(self, contract: Any, key: Hashable | None = None) -> Any: ...

    def resolve(self, contract: Any, key: Hashable | None = None) -> Any:
        """Resolve ``contract``, optionally under a dependency key.

        Args:
            contract: Type to resolve, including collection shapes like ``list[T]``.
            key: Dependency key the contract was registered under.

        """
        return self.repository.get_resolver(contract, key).build().resolve()

    def build(self) -> None:
        """Build every registered resolver now.

        Surfaces construction and missing-dependency errors before the first
        resolution; global instances are created here.
        """
        for contract, key in self.repository.registered_pairs():
            self.repository.get_resolver(contract, key).build()

    def open_scope(self, parent: Scope | None = None) -> Scope:
        """Open a scope; it becomes the active scope of the current context."""
        return self.scopes.open_scope(parent)

    def _add(
        self,
        contract: Any,
        resolver: ResolverProtocol,
        key: Hashable | None,
        scope_sharing: ScopeSharing | None,
    ) -> ResolverProtocol:
        if scope_sharing is not None:
            if resolver.lifetime is Lifetime.GLOBAL:
                msg = f"{contract!r} is global and cannot also be cached per scope."
                raise DIWeaveInvalidRegistrationError(msg)
            resolver = ScopedResolver(resolver, self.scopes, scope_sharing)
        self.repository.register(contract, resolver, key)
        logger.debug("Registered %r for %r (key=%r)", resolver, contract, key)
        return resolver

    def _validate_implementation(self, contract: Any, implementation: Any) -> None:
        if not is_runtime_class(implementation):
            msg = f"Implementation for {contract!r} must be a class, got {implementation!r}"
            raise DIWeaveInvalidRegistrationError(msg)
        if not is_runtime_class(contract) or is_protocol(contract):
            return
        if not issubclass(implementation, contract):
            msg = f"{implementation.__qualname__} must be a subclass of {contract.__qualname__}"
            raise DIWeaveInvalidRegistrationError(msg)
