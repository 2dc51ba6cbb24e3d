"""Tests for the resolver repository and instance factories."""

from __future__ import annotations

import pytest

from diweave import (
    DecoratorChainResolver,
    DIWeaveInvalidRegistrationError,
    DIWeaveNotRegisteredError,
    EnumerableResolver,
    InstanceFactory,
    Lifetime,
    ResolverRepository,
)


class Plugin:
    pass


class TestResolverRepository:
    def test_get_resolver_returns_single_registration(self, repository: ResolverRepository) -> None:
        resolver = InstanceFactory(Plugin)
        repository.register(Plugin, resolver)

        assert repository.get_resolver(Plugin) is resolver

    def test_unregistered_contract_fails(self, repository: ResolverRepository) -> None:
        with pytest.raises(DIWeaveNotRegisteredError) as exc_info:
            repository.get_resolver(Plugin)

        assert exc_info.value.contract is Plugin
        assert exc_info.value.key is None

    def test_unregistered_key_fails(self, repository: ResolverRepository) -> None:
        repository.register(Plugin, InstanceFactory(Plugin))

        with pytest.raises(DIWeaveNotRegisteredError) as exc_info:
            repository.get_resolver(Plugin, "other")

        assert exc_info.value.key == "other"
        assert "under key 'other'" in str(exc_info.value)

    def test_keyed_lookup(self, repository: ResolverRepository) -> None:
        first = InstanceFactory(Plugin)
        second = InstanceFactory(Plugin)
        repository.register(Plugin, first, key="first")
        repository.register(Plugin, second, key="second")

        assert repository.get_resolver(Plugin, "first") is first
        assert repository.get_resolver(Plugin, "second") is second

    def test_duplicate_registrations_form_a_chain(self, repository: ResolverRepository) -> None:
        first = InstanceFactory(Plugin)
        second = InstanceFactory(Plugin)
        repository.register(Plugin, first)
        repository.register(Plugin, second)

        resolver = repository.get_resolver(Plugin)

        assert isinstance(resolver, DecoratorChainResolver)
        assert resolver.stages == (first, second)
        assert repository.get_resolver(Plugin) is resolver

    def test_get_resolvers_preserves_order_across_keys(
        self,
        repository: ResolverRepository,
    ) -> None:
        resolvers = [InstanceFactory(Plugin) for _ in range(3)]
        repository.register(Plugin, resolvers[0])
        repository.register(Plugin, resolvers[1], key="keyed")
        repository.register(Plugin, resolvers[2])

        assert repository.get_resolvers(Plugin) == tuple(resolvers)

    def test_get_resolvers_of_unknown_contract_is_empty(
        self,
        repository: ResolverRepository,
    ) -> None:
        assert repository.get_resolvers(Plugin) == ()

    def test_collection_request_creates_enumerable_resolver(
        self,
        repository: ResolverRepository,
    ) -> None:
        resolver = repository.get_resolver(list[Plugin])

        assert isinstance(resolver, EnumerableResolver)
        assert resolver.element_type is Plugin

    def test_registration_invalidates_derived_resolvers(
        self,
        repository: ResolverRepository,
    ) -> None:
        repository.register(Plugin, InstanceFactory(Plugin))
        before = repository.get_resolver(list[Plugin])

        repository.register(Plugin, InstanceFactory(Plugin))

        after = repository.get_resolver(list[Plugin])
        assert after is not before
        assert len(after.resolve()) == 2

    def test_explicit_collection_registration_wins(self, repository: ResolverRepository) -> None:
        plugins = [Plugin()]
        repository.register(list[Plugin], InstanceFactory.from_instance(plugins))

        assert repository.get_resolver(list[Plugin]).resolve() is plugins

    def test_is_registered(self, repository: ResolverRepository) -> None:
        repository.register(Plugin, InstanceFactory(Plugin), key="k")

        assert repository.is_registered(Plugin, "k")
        assert not repository.is_registered(Plugin)

    def test_registered_pairs(self, repository: ResolverRepository) -> None:
        repository.register(Plugin, InstanceFactory(Plugin))
        repository.register(Plugin, InstanceFactory(Plugin))
        repository.register(Plugin, InstanceFactory(Plugin), key="k")

        assert repository.registered_pairs() == [(Plugin, None), (Plugin, "k")]


class TestInstanceFactory:
    def test_local_factory_calls_producer_every_time(self) -> None:
        factory = InstanceFactory(Plugin).build()

        assert factory.resolve() is not factory.resolve()

    def test_global_factory_calls_producer_once(self) -> None:
        calls: list[Plugin] = []

        def produce() -> Plugin:
            plugin = Plugin()
            calls.append(plugin)
            return plugin

        factory = InstanceFactory(produce, Lifetime.GLOBAL)

        assert factory.resolve() is factory.build().resolve()
        assert len(calls) == 1

    def test_from_instance_never_calls_producer(self) -> None:
        plugin = Plugin()
        factory = InstanceFactory.from_instance(plugin)

        assert factory.lifetime is Lifetime.GLOBAL
        assert factory.build().resolve() is plugin

    def test_global_none_value_is_cached(self) -> None:
        calls: list[int] = []
        factory = InstanceFactory(lambda: calls.append(1), Lifetime.GLOBAL)

        assert factory.resolve() is None
        assert factory.resolve() is None
        assert calls == [1]

    def test_factory_accepting_next_gets_default_continuation(self) -> None:
        factory = InstanceFactory(lambda next_stage: ("wrapped", next_stage()), accepts_next=True)

        assert factory.resolve() == ("wrapped", None)
        assert factory.resolve(lambda: "inner") == ("wrapped", "inner")

    def test_global_factory_cannot_accept_next(self) -> None:
        with pytest.raises(DIWeaveInvalidRegistrationError):
            InstanceFactory(lambda next_stage: None, Lifetime.GLOBAL, accepts_next=True)
