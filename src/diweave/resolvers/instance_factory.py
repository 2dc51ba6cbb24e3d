from __future__ import annotations

from collections.abc import Callable
from typing import Any

from typing_extensions import Self

from diweave.exceptions import DIWeaveInvalidRegistrationError
from diweave.lifetime import Lifetime
from diweave.lock_mode import LockMode
from diweave.resolvers.protocol import NextStage, default_result

_UNSET: Any = object()


class InstanceFactory:
    """Leaf resolver wrapping a caller-supplied producer.

    Local factories call the producer on every resolution. Global factories
    call it at most once and return that value forever.
    """

    def __init__(
        self,
        producer: Callable[..., Any],
        lifetime: Lifetime = Lifetime.LOCAL,
        *,
        accepts_next: bool = False,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        if accepts_next and lifetime is Lifetime.GLOBAL:
            msg = "A global factory is computed once and cannot take a decorator continuation."
            raise DIWeaveInvalidRegistrationError(msg)
        self._producer = producer
        self._lifetime = lifetime
        self._accepts_next = accepts_next
        self._lock = lock_mode.new_lock()
        self._value: Any = _UNSET

    @classmethod
    def from_instance(cls, instance: Any) -> Self:
        """Return a global factory for a pre-built instance."""
        factory = cls(lambda: instance, Lifetime.GLOBAL)
        factory._value = instance
        return factory

    @property
    def lifetime(self) -> Lifetime:
        return self._lifetime

    def build(self) -> Self:
        if self._lifetime is Lifetime.GLOBAL and self._value is _UNSET:
            with self._lock:
                if self._value is _UNSET:
                    self._value = self._producer()
        return self

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        if self._lifetime is Lifetime.GLOBAL:
            if self._value is _UNSET:
                self.build()
            return self._value
        if self._accepts_next:
            return self._producer(next_stage or default_result)
        return self._producer()

    def __repr__(self) -> str:
        return f"InstanceFactory({self._producer!r}, {self._lifetime})"
