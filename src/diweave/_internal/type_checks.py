from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard

from typing_extensions import is_protocol


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_instantiable_class(candidate: object) -> bool:
    """Return true for concrete classes: not abstract and not a ``Protocol``.

    Args:
        candidate: Value being checked before compiling an instantiation plan.

    """
    if not is_runtime_class(candidate):
        return False
    return not (inspect.isabstract(candidate) or is_protocol(candidate))


__all__ = ["is_instantiable_class", "is_runtime_class"]
