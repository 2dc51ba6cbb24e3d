"""Shared pytest fixtures for diweave tests."""

import pytest

from diweave import LockMode, ResolutionEngine, ResolverRepository


@pytest.fixture()
def engine() -> ResolutionEngine:
    """Default engine with thread-locked builds."""
    return ResolutionEngine()


@pytest.fixture()
def repository(engine: ResolutionEngine) -> ResolverRepository:
    """Repository backing the default engine."""
    return engine.repository


@pytest.fixture()
def unlocked_engine() -> ResolutionEngine:
    """Engine whose builds take no locks."""
    return ResolutionEngine(lock_mode=LockMode.NONE)
