"""Pytest fixtures exposing a resolution engine and a per-test scope.

Enable the plugin with ``pytest_plugins = ["diweave.integrations.pytest_plugin"]``
and override ``diweave_engine`` with a configured engine.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from diweave.engine import ResolutionEngine
from diweave.scope import Scope


@pytest.fixture()
def diweave_engine() -> ResolutionEngine:
    """Fixture hook for the plugin-managed engine.

    Users must override this fixture in their own test suite to provide
    registrations.

    """
    msg = (
        "The diweave pytest plugin requires overriding the 'diweave_engine' fixture in your "
        "test suite. Define @pytest.fixture() def diweave_engine() -> ResolutionEngine: ... "
        "and return a configured engine."
    )
    raise RuntimeError(msg)


@pytest.fixture()
def diweave_scope(diweave_engine: ResolutionEngine) -> Iterator[Scope]:
    """Open a scope on ``diweave_engine`` for the duration of one test.

    The scope is active while the test runs and is closed afterwards, which
    releases every disposable instance cached in it.

    """
    with diweave_engine.open_scope() as scope:
        yield scope
