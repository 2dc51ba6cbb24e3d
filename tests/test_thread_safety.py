"""Tests for concurrent building and resolution."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from diweave import (
    InstanceFactory,
    Lifetime,
    ObjectBuilder,
    ResolutionEngine,
    Scope,
    ScopeSharing,
)

THREADS = 16


class Config:
    pass


class Service:
    def __init__(self, config: Config) -> None:
        self.config = config


def _run_concurrently(target: Any, count: int = THREADS) -> list[Any]:
    barrier = threading.Barrier(count)

    def worker() -> Any:
        barrier.wait()
        return target()

    with ThreadPoolExecutor(max_workers=count) as executor:
        futures = [executor.submit(worker) for _ in range(count)]
        return [future.result() for future in futures]


class TestConcurrentScope:
    def test_factory_runs_once_per_key(self) -> None:
        scope = Scope()
        calls: list[int] = []
        calls_lock = threading.Lock()

        def factory() -> object:
            with calls_lock:
                calls.append(1)
            time.sleep(0.01)
            return object()

        results = _run_concurrently(lambda: scope.get("key", factory))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_different_keys_do_not_share_instances(self) -> None:
        scope = Scope()
        counter = iter(range(THREADS))
        counter_lock = threading.Lock()

        def next_key() -> int:
            with counter_lock:
                return next(counter)

        results = _run_concurrently(lambda: scope.get(next_key(), object))

        assert len({id(result) for result in results}) == THREADS

    def test_scoped_resolution_from_worker_threads(self, engine: ResolutionEngine) -> None:
        engine.register_type(Config, scope_sharing=ScopeSharing.PER_SCOPE)
        scope = engine.open_scope()

        def resolve_in_scope() -> Config:
            # Worker threads start without an active scope.
            with engine.open_scope(parent=scope):
                return engine.resolve(Config)

        results = _run_concurrently(resolve_in_scope)
        scope.close()

        assert len({id(result) for result in results}) == THREADS


class TestConcurrentBuild:
    def test_global_factory_produces_one_instance(self) -> None:
        calls: list[int] = []

        def produce() -> Config:
            calls.append(1)
            time.sleep(0.01)
            return Config()

        factory = InstanceFactory(produce, Lifetime.GLOBAL)

        results = _run_concurrently(lambda: factory.build().resolve())

        assert calls == [1]
        assert all(result is results[0] for result in results)

    def test_global_builder_produces_one_instance(self, engine: ResolutionEngine) -> None:
        engine.register_type(Config, lifetime=Lifetime.GLOBAL)

        results = _run_concurrently(lambda: engine.resolve(Config))

        assert all(result is results[0] for result in results)

    def test_builder_compiles_once(self, engine: ResolutionEngine) -> None:
        engine.register_type(Config, lifetime=Lifetime.GLOBAL)
        builder = ObjectBuilder(Service, engine.repository)

        plans = _run_concurrently(lambda: builder.build()._plan)

        assert all(plan is plans[0] for plan in plans)

    def test_local_resolution_creates_distinct_instances(self, engine: ResolutionEngine) -> None:
        engine.register_type(Config)
        engine.register_type(Service)

        results = _run_concurrently(lambda: engine.resolve(Service))

        assert len({id(result) for result in results}) == THREADS
        assert len({id(result.config) for result in results}) == THREADS

    def test_mixed_collection_keeps_shared_entries(self, engine: ResolutionEngine) -> None:
        shared = Config()
        engine.register_instance(Config, shared)
        engine.register_type(Config)

        results = _run_concurrently(lambda: engine.resolve(list[Config]))

        assert all(result[0] is shared for result in results)
        assert len({id(result[1]) for result in results}) == THREADS

    def test_registration_during_resolution(self) -> None:
        engine = ResolutionEngine()
        engine.register_type(Config)
        errors: list[Exception] = []

        def register() -> None:
            for _ in range(50):
                engine.register_type(Config)

        def resolve() -> None:
            for _ in range(50):
                try:
                    engine.resolve(list[Config])
                except Exception as e:  # noqa: BLE001
                    errors.append(e)

        threads = [threading.Thread(target=register), threading.Thread(target=resolve)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not errors
        assert len(engine.resolve(list[Config])) == 51


class TestUnlockedEngine:
    def test_single_threaded_resolution(self, unlocked_engine: ResolutionEngine) -> None:
        unlocked_engine.register_type(Config, lifetime=Lifetime.GLOBAL)
        unlocked_engine.register_type(Service)

        first = unlocked_engine.resolve(Service)
        second = unlocked_engine.resolve(Service)

        assert first is not second
        assert first.config is second.config
