from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from contextlib import AbstractContextManager, ExitStack
from contextvars import ContextVar
from types import TracebackType
from typing import Any, TypeVar

from typing_extensions import Self

from diweave.exceptions import DIWeaveNoActiveScopeError, DIWeaveScopeClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING: Any = object()


def push_disposal(stack: ExitStack, instance: object) -> bool:
    """Register ``instance`` for release on ``stack`` when it supports it.

    Context managers are released through ``__exit__``; other objects through
    a callable ``close()``. Returns whether anything was registered.
    """
    if isinstance(instance, type):
        return False
    if isinstance(instance, AbstractContextManager):
        stack.push(instance)
        return True
    close = getattr(instance, "close", None)
    if callable(close):
        stack.callback(close)
        return True
    return False


class Scope:
    """Per-unit-of-work instance cache, closed explicitly by its owner.

    Lookups of cached keys are plain dict reads. Creating a missing key takes
    a lock dedicated to that key, so the factory for a key runs at most once
    per scope while unrelated keys proceed in parallel.

    Closing releases every cached instance that is a context manager or has a
    ``close()`` method, exactly once, in reverse creation order. An object
    cached under several keys is released once. Open child scopes are closed
    first. Cached reads are not serialized against ``close()``: a ``get``
    racing a close on another thread may return an instance the close is
    releasing.

    Examples:
        .. code-block:: python

            with service.open_scope() as scope:
                session = scope.get(session_key, Session)

    """

    def __init__(self, service: ScopeService | None = None, parent: Scope | None = None) -> None:
        self._service = service
        self._parent = parent
        self._instances: dict[Hashable, Any] = {}
        self._key_locks: dict[Hashable, threading.RLock] = {}
        self._state_lock = threading.Lock()
        self._exit_stack = ExitStack()
        # Keyed by identity; values keep ids from being reused.
        self._disposables: dict[int, Any] = {}
        self._children: list[Scope] = []
        self._closed = False
        if parent is not None:
            parent._attach(self)

    @property
    def parent(self) -> Scope | None:
        return self._parent

    @property
    def root(self) -> Scope:
        scope = self
        while scope._parent is not None:
            scope = scope._parent
        return scope

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, key: Hashable, factory: Callable[[], T]) -> T:
        """Return the instance cached under ``key``, creating it with ``factory`` once.

        Args:
            key: Opaque cache key, usually owned by a scoped resolver.
            factory: Zero-argument callable creating the instance on a miss.

        Raises:
            DIWeaveScopeClosedError: the scope is closed.

        """
        if self._closed:
            raise DIWeaveScopeClosedError(self)
        instance = self._instances.get(key, _MISSING)
        if instance is not _MISSING:
            if self._closed:
                raise DIWeaveScopeClosedError(self)
            return instance

        with self._lock_for(key):
            instance = self._instances.get(key, _MISSING)
            if instance is not _MISSING:
                return instance
            instance = factory()
            self._store(key, instance)
            return instance

    def get_transparent(self, key: Hashable, factory: Callable[[], T]) -> T:
        """Like ``get`` but cache in the root scope so every descendant shares one instance."""
        if self._closed:
            raise DIWeaveScopeClosedError(self)
        return self.root.get(key, factory)

    def close(self) -> None:
        """Close the scope and release its cached instances.

        Re-closing is a no-op. Every release runs even when one of them
        raises; the error propagates once all have run.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            children = list(self._children)
            self._children.clear()
            instances_stack = self._exit_stack

        if self._parent is not None:
            self._parent._detach(self)
        if self._service is not None:
            self._service._on_close(self)

        logger.debug("Closing %r with %d open child scopes", self, len(children))
        with ExitStack() as stack:
            stack.push(instances_stack)
            for child in children:
                stack.callback(child.close)
        self._instances.clear()

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._state_lock:
            if self._closed:
                raise DIWeaveScopeClosedError(self)
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.RLock()
            return lock

    def _store(self, key: Hashable, instance: Any) -> None:
        with self._state_lock:
            already_owned = id(instance) in self._disposables
            if not self._closed:
                self._instances[key] = instance
                if not already_owned and push_disposal(self._exit_stack, instance):
                    self._disposables[id(instance)] = instance
                self._key_locks.pop(key, None)
                return

        # Closed while the factory ran: the instance has no owner left.
        if not already_owned:
            with ExitStack() as stack:
                if push_disposal(stack, instance):
                    logger.debug("Releasing %r created after %r closed", instance, self)
        raise DIWeaveScopeClosedError(self)

    def _attach(self, child: Scope) -> None:
        with self._state_lock:
            if self._closed:
                raise DIWeaveScopeClosedError(self)
            self._children.append(child)

    def _detach(self, child: Scope) -> None:
        with self._state_lock:
            if child in self._children:
                self._children.remove(child)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Scope {id(self):#x} {state}>"


class ScopeService:
    """Track the active scope of the current thread or task.

    The active scope lives in a ``ContextVar``: new threads start without an
    active scope, asyncio tasks inherit the scope active when they were
    created.
    """

    def __init__(self) -> None:
        self._current: ContextVar[Scope | None] = ContextVar(
            f"diweave_scope_{id(self):x}",
            default=None,
        )

    @property
    def current(self) -> Scope | None:
        """Return the innermost open scope, or ``None``."""
        scope = self._current.get()
        while scope is not None and scope.closed:
            scope = scope.parent
        return scope

    def require_current(self) -> Scope:
        """Return the innermost open scope.

        Raises:
            DIWeaveNoActiveScopeError: no scope is open in this context.

        """
        scope = self.current
        if scope is None:
            msg = "No scope is open; open one with open_scope() before resolving scoped values."
            raise DIWeaveNoActiveScopeError(msg)
        return scope

    def open_scope(self, parent: Scope | None = None) -> Scope:
        """Open a scope and make it the active one.

        Args:
            parent: Parent scope. Defaults to the active scope, if any.

        """
        if parent is None:
            parent = self.current
        scope = Scope(self, parent)
        self._current.set(scope)
        logger.debug("Opened %r (parent %r)", scope, parent)
        return scope

    def _on_close(self, scope: Scope) -> None:
        if self._current.get() is scope:
            self._current.set(self.current)
