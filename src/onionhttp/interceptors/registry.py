"""Interceptor registries and the ``interceptors.<phase>.use`` surface.

This module contains:

* :class:`InterceptorRegistry` -- an append-only store of
  :class:`~onionhttp.models.InterceptorEntry` objects, one ordered list per
  phase. There is exactly one global registry per process
  (:data:`GLOBAL_REGISTRY`); every client owns one instance registry.
* :class:`InterceptorManager` -- the object behind
  ``client.interceptors.request`` and ``client.interceptors.response``.
  It validates handlers and routes each registration to the global or the
  instance registry.
* :class:`Interceptors` -- the pair of managers attached to a client.

Readers never mutate a registry. They call :meth:`InterceptorRegistry.entries`
which returns a tuple snapshot, so a registration that happens while a
request is in flight only affects requests started afterwards.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from onionhttp.exceptions import ConfigurationError
from onionhttp.models import InterceptorEntry, Phase, Scope

logger = logging.getLogger(__name__)

INVALID_HANDLER_MESSAGE = "Interceptor must be function!"

# Shared by every registry so ``order`` reflects arrival time process-wide.
_order_counter = itertools.count()


class InterceptorRegistry:
    """Ordered interceptor entries for both phases, tagged with one scope.

    Example::

        registry = InterceptorRegistry(Scope.INSTANCE)
        entry = registry.add(Phase.REQUEST, add_auth_header)
        registry.entries(Phase.REQUEST)  # (entry,)
    """

    def __init__(self, scope: Scope) -> None:
        self._scope = scope
        self._entries: dict[Phase, list[InterceptorEntry]] = {
            Phase.REQUEST: [],
            Phase.RESPONSE: [],
        }

    @property
    def scope(self) -> Scope:
        """The scope tag given to every entry added here."""
        return self._scope

    def add(self, phase: Phase, handler: Callable[..., Any]) -> InterceptorEntry:
        """Append *handler* to the *phase* chain.

        Args:
            phase: The chain the handler belongs to.
            handler: A callable, sync or async.

        Returns:
            The newly created entry. Keep it to :meth:`remove` the handler
            later.

        Raises:
            ConfigurationError: If *handler* is not callable. Nothing is
                added in that case.
        """
        if not callable(handler):
            raise ConfigurationError(INVALID_HANDLER_MESSAGE)

        entry = InterceptorEntry(
            phase=phase,
            scope=self._scope,
            handler=handler,
            order=next(_order_counter),
        )
        self._entries[phase].append(entry)
        logger.debug(
            "Registered %s %s interceptor '%s' (order %d)",
            self._scope.value, phase.value, entry.name, entry.order,
        )
        return entry

    def remove(self, entry: InterceptorEntry) -> bool:
        """Remove *entry* by identity.

        Returns:
            ``True`` if the entry was found and removed, ``False`` otherwise.
        """
        entries = self._entries[entry.phase]
        for index, candidate in enumerate(entries):
            if candidate is entry:
                # Rebind instead of deleting in place so concurrent readers
                # iterating the old list are unaffected.
                self._entries[entry.phase] = entries[:index] + entries[index + 1:]
                logger.debug(
                    "Ejected %s %s interceptor '%s'",
                    self._scope.value, entry.phase.value, entry.name,
                )
                return True
        return False

    def entries(self, phase: Phase) -> tuple[InterceptorEntry, ...]:
        """Return a snapshot of the *phase* chain in registration order."""
        return tuple(self._entries[phase])

    def clear(self, phase: Optional[Phase] = None) -> None:
        """Drop every entry, or only those of *phase* when given."""
        phases = [phase] if phase is not None else list(self._entries)
        for p in phases:
            self._entries[p] = []

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __repr__(self) -> str:
        return (
            f"InterceptorRegistry(scope={self._scope.value!r}, "
            f"request={len(self._entries[Phase.REQUEST])}, "
            f"response={len(self._entries[Phase.RESPONSE])})"
        )


GLOBAL_REGISTRY = InterceptorRegistry(Scope.GLOBAL)
"""The process-wide registry shared by every client."""


class InterceptorManager:
    """Registration surface for one phase of one client.

    Exposed as ``client.interceptors.request`` and
    ``client.interceptors.response``. Registrations default to the global
    registry; pass ``global_=False`` (or ``{"global": False}``) to keep the
    interceptor private to the client the manager belongs to.

    Args:
        phase: The phase this manager registers into.
        instance_registry: The owning client's private registry.
        global_registry: The process-wide registry.
    """

    def __init__(
        self,
        phase: Phase,
        instance_registry: InterceptorRegistry,
        global_registry: InterceptorRegistry,
    ) -> None:
        self._phase = phase
        self._instance = instance_registry
        self._global = global_registry

    @property
    def phase(self) -> Phase:
        return self._phase

    def use(
        self,
        handler: Callable[..., Any],
        options: Optional[Mapping[str, Any]] = None,
        *,
        global_: Optional[bool] = None,
    ) -> InterceptorEntry:
        """Register *handler* for this manager's phase.

        Request handlers are called as ``handler(url, options)``; response
        handlers as ``handler(response, options)``. Either kind may be a
        coroutine function or return an awaitable.

        Args:
            handler: The interceptor callable.
            options: Optional mapping; its ``"global"`` key selects the scope.
            global_: Keyword form of the scope switch. Overrides *options*.

        Returns:
            The created :class:`~onionhttp.models.InterceptorEntry`.

        Raises:
            ConfigurationError: If *handler* is not callable.
        """
        is_global = True
        if options is not None:
            is_global = bool(options.get("global", True))
        if global_ is not None:
            is_global = global_

        registry = self._global if is_global else self._instance
        return registry.add(self._phase, handler)

    def eject(self, entry: InterceptorEntry) -> bool:
        """Remove a previously registered entry from whichever registry holds it."""
        registry = self._global if entry.scope is Scope.GLOBAL else self._instance
        return registry.remove(entry)

    def __repr__(self) -> str:
        return f"InterceptorManager(phase={self._phase.value!r})"


class Interceptors:
    """The ``request`` and ``response`` managers of one client."""

    def __init__(
        self,
        instance_registry: InterceptorRegistry,
        global_registry: InterceptorRegistry,
    ) -> None:
        self.request = InterceptorManager(Phase.REQUEST, instance_registry, global_registry)
        self.response = InterceptorManager(Phase.RESPONSE, instance_registry, global_registry)
