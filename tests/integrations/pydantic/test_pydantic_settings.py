"""Tests for pydantic-settings registration."""

from __future__ import annotations

import pytest
from pydantic_settings import BaseSettings

from diweave import (
    DIWeaveInvalidRegistrationError,
    InstanceFactory,
    Lifetime,
    ResolutionEngine,
    ScopeSharing,
)
from diweave._internal.integrations.pydantic_settings import (
    SETTINGS_BASES,
    is_pydantic_settings_subclass,
)


class AppSettings(BaseSettings):
    database_url: str = "sqlite://"
    pool_size: int = 5


class Repository:
    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings


class TestSettingsDetection:
    def test_base_settings_is_discovered(self) -> None:
        assert BaseSettings in SETTINGS_BASES

    def test_subclass_is_detected(self) -> None:
        assert is_pydantic_settings_subclass(AppSettings)

    @pytest.mark.parametrize("candidate", [Repository, AppSettings(), "AppSettings", None])
    def test_other_objects_are_not_detected(self, candidate: object) -> None:
        assert not is_pydantic_settings_subclass(candidate)


class TestSettingsRegistration:
    def test_registered_as_global_factory(self, engine: ResolutionEngine) -> None:
        resolver = engine.register_type(AppSettings)

        assert isinstance(resolver, InstanceFactory)
        assert resolver.lifetime is Lifetime.GLOBAL
        assert engine.resolve(AppSettings) is engine.resolve(AppSettings)

    def test_fields_are_read_from_environment(
        self,
        engine: ResolutionEngine,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
        monkeypatch.setenv("POOL_SIZE", "20")
        engine.register_type(AppSettings)

        settings = engine.resolve(AppSettings)

        assert settings.database_url == "postgresql://db/app"
        assert settings.pool_size == 20

    def test_settings_inlined_into_dependents(self, engine: ResolutionEngine) -> None:
        engine.register_type(AppSettings)
        engine.register_type(Repository)

        first = engine.resolve(Repository)
        second = engine.resolve(Repository)

        assert first is not second
        assert first.settings is second.settings

    def test_settings_cannot_be_scoped(self, engine: ResolutionEngine) -> None:
        with pytest.raises(DIWeaveInvalidRegistrationError, match="cached per scope"):
            engine.register_type(AppSettings, scope_sharing=ScopeSharing.PER_SCOPE)
