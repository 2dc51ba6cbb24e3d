from diweave.resolvers.decorator_chain import DecoratorChainResolver
from diweave.resolvers.enumerable import EnumerableResolver
from diweave.resolvers.instance_factory import InstanceFactory
from diweave.resolvers.object_builder import ObjectBuilder
from diweave.resolvers.protocol import NextStage, ResolverProtocol
from diweave.resolvers.scoped import ScopedResolver

__all__ = [
    "DecoratorChainResolver",
    "EnumerableResolver",
    "InstanceFactory",
    "NextStage",
    "ObjectBuilder",
    "ResolverProtocol",
    "ScopedResolver",
]
