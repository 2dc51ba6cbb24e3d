from __future__ import annotations

import importlib
from typing import Any

from diweave._internal.type_checks import is_runtime_class


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


SETTINGS_BASES: tuple[type[Any], ...] = tuple(
    base for base in (_load_base_settings("pydantic_settings"),) if base is not None
)


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a class is a Pydantic settings model.

    Settings models read their fields from the environment, so the engine
    registers them through a zero-argument global factory instead of
    compiling a constructor plan over their (optional) fields. If
    ``pydantic-settings`` is not installed this returns ``False``.

    Args:
        candidate: Object to test.

    """
    if not is_runtime_class(candidate):
        return False
    return any(issubclass(candidate, base) for base in SETTINGS_BASES)


__all__ = ["SETTINGS_BASES", "is_pydantic_settings_subclass"]
