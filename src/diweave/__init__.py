from diweave.engine import ResolutionEngine
from diweave.exceptions import (
    DIWeaveAmbiguousConstructorError,
    DIWeaveConstructionError,
    DIWeaveError,
    DIWeaveInvalidRegistrationError,
    DIWeaveMissingDependencyError,
    DIWeaveNoActiveScopeError,
    DIWeaveNoConstructorError,
    DIWeaveNotInstantiableError,
    DIWeaveNotRegisteredError,
    DIWeaveResolveError,
    DIWeaveScopeClosedError,
    DIWeaveScopeError,
    DIWeaveUnsupportedContainerError,
)
from diweave.lifetime import Lifetime
from diweave.lock_mode import LockMode
from diweave.markers import Component
from diweave.policies import EmptyCollectionPolicy, ScopeSharing
from diweave.repository import ResolverRepository
from diweave.resolvers import (
    DecoratorChainResolver,
    EnumerableResolver,
    InstanceFactory,
    NextStage,
    ObjectBuilder,
    ResolverProtocol,
    ScopedResolver,
)
from diweave.scope import Scope, ScopeService

__all__ = [
    "Component",
    "DIWeaveAmbiguousConstructorError",
    "DIWeaveConstructionError",
    "DIWeaveError",
    "DIWeaveInvalidRegistrationError",
    "DIWeaveMissingDependencyError",
    "DIWeaveNoActiveScopeError",
    "DIWeaveNoConstructorError",
    "DIWeaveNotInstantiableError",
    "DIWeaveNotRegisteredError",
    "DIWeaveResolveError",
    "DIWeaveScopeClosedError",
    "DIWeaveScopeError",
    "DIWeaveUnsupportedContainerError",
    "DecoratorChainResolver",
    "EmptyCollectionPolicy",
    "EnumerableResolver",
    "InstanceFactory",
    "Lifetime",
    "LockMode",
    "NextStage",
    "ObjectBuilder",
    "ResolutionEngine",
    "ResolverProtocol",
    "ResolverRepository",
    "Scope",
    "ScopeService",
    "ScopeSharing",
]
