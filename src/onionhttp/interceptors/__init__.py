"""Interceptor engine -- registries, scope resolution, and the onion composer.

Key pieces:

* :class:`InterceptorRegistry` -- append-only store of interceptor entries
  per phase. :data:`GLOBAL_REGISTRY` is shared by the whole process.
* :class:`InterceptorManager` -- ``client.interceptors.request`` /
  ``client.interceptors.response``; validates and routes registrations.
* :func:`snapshot` -- resolves the effective chains (global, then instance)
  for one invocation.
* :class:`Onion` -- folds a resolved chain into one async function returning
  a :class:`Success` or :class:`Failure` outcome.

Example::

    from onionhttp.interceptors import GLOBAL_REGISTRY, Onion, snapshot

    chains = snapshot(GLOBAL_REGISTRY, client_registry)
    run = Onion(Phase.REQUEST).compose(chains.request)
    state = (await run(RequestState(url, options))).unwrap()
"""

from onionhttp.interceptors.onion import NO_CHANGE, Failure, Onion, Replace, Success
from onionhttp.interceptors.registry import (
    GLOBAL_REGISTRY,
    InterceptorManager,
    InterceptorRegistry,
    Interceptors,
)
from onionhttp.interceptors.scope import ChainSnapshot, resolve_chain, snapshot

__all__ = [
    "GLOBAL_REGISTRY",
    "ChainSnapshot",
    "Failure",
    "InterceptorManager",
    "InterceptorRegistry",
    "Interceptors",
    "NO_CHANGE",
    "Onion",
    "Replace",
    "Success",
    "resolve_chain",
    "snapshot",
]
