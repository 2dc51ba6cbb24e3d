from __future__ import annotations

import uuid
from functools import partial
from typing import Any

from typing_extensions import Self

from diweave.lifetime import Lifetime
from diweave.policies import ScopeSharing
from diweave.resolvers.protocol import NextStage, ResolverProtocol
from diweave.scope import ScopeService


class ScopedResolver:
    """Cache an inner resolver's values in the active scope.

    The resolver owns only an opaque key; the instances belong to whichever
    scope is active at resolution time and are released when it closes.
    Scoped resolvers are always local so dependents look them up per call.
    """

    def __init__(
        self,
        inner: ResolverProtocol,
        scopes: ScopeService,
        sharing: ScopeSharing = ScopeSharing.PER_SCOPE,
    ) -> None:
        self._inner = inner
        self._scopes = scopes
        self._sharing = sharing
        self.key = uuid.uuid4()

    @property
    def lifetime(self) -> Lifetime:
        return Lifetime.LOCAL

    def build(self) -> Self:
        self._inner.build()
        return self

    def resolve(self, next_stage: NextStage | None = None) -> Any:
        scope = self._scopes.require_current()
        factory = partial(self._inner.resolve, next_stage)
        if self._sharing is ScopeSharing.TRANSPARENT:
            return scope.get_transparent(self.key, factory)
        return scope.get(self.key, factory)

    def __repr__(self) -> str:
        return f"ScopedResolver({self._inner!r}, {self._sharing.value})"
