"""Scope resolution -- the effective interceptor order for one invocation.

The effective chain of a phase is every global entry followed by every
instance entry, each subset in registration order. Global mutations are
therefore visible to all instance interceptors of the same invocation.
Chains are resolved once when an invocation starts and never cached across
invocations.
"""

from __future__ import annotations

from dataclasses import dataclass

from onionhttp.interceptors.registry import InterceptorRegistry
from onionhttp.models import InterceptorEntry, Phase


@dataclass(frozen=True)
class ChainSnapshot:
    """Both phases' resolved chains, captured at the start of an invocation."""

    request: tuple[InterceptorEntry, ...]
    response: tuple[InterceptorEntry, ...]

    def for_phase(self, phase: Phase) -> tuple[InterceptorEntry, ...]:
        return self.request if phase is Phase.REQUEST else self.response


def resolve_chain(
    phase: Phase,
    global_registry: InterceptorRegistry,
    instance_registry: InterceptorRegistry,
) -> tuple[InterceptorEntry, ...]:
    """Return the ordered entries for *phase*: global first, then instance."""
    return global_registry.entries(phase) + instance_registry.entries(phase)


def snapshot(
    global_registry: InterceptorRegistry,
    instance_registry: InterceptorRegistry,
) -> ChainSnapshot:
    """Resolve both phases at once."""
    return ChainSnapshot(
        request=resolve_chain(Phase.REQUEST, global_registry, instance_registry),
        response=resolve_chain(Phase.RESPONSE, global_registry, instance_registry),
    )
