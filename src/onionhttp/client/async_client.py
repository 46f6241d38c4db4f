"""Asynchronous client facade -- the callable most users touch.

:class:`Client` bundles a :class:`~onionhttp.models.ClientConfig`, a private
interceptor registry, a transport, and a
:class:`~onionhttp.client.pipeline.RequestPipeline`. Calling the client
validates the URL synchronously and returns an awaitable that runs the
pipeline::

    data = await request("https://api.example.com/users", {"method": "get"})

:data:`request` is the process-wide default client. :func:`extend` builds a
new client with its own configuration and its own (empty) instance
registry; global interceptors registered through any client apply to all of
them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Optional, Union

from onionhttp.client.pipeline import RequestPipeline
from onionhttp.client.transport import HttpxTransport, Transport
from onionhttp.exceptions import ValidationError
from onionhttp.interceptors.registry import GLOBAL_REGISTRY, InterceptorRegistry, Interceptors
from onionhttp.models import ClientConfig, Scope

logger = logging.getLogger(__name__)

URL_MUST_BE_STRING = "url MUST be a string"

ConfigLike = Union[ClientConfig, Mapping[str, Any], None]


def _build_config(config: ConfigLike, overrides: Mapping[str, Any]) -> ClientConfig:
    if isinstance(config, ClientConfig):
        base = config.model_dump()
    else:
        base = dict(config or {})
    base.update(overrides)
    return ClientConfig.model_validate(base)


def _check_timeout(timeout: Any) -> None:
    if timeout is None:
        return
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValidationError(f"timeout MUST be a positive number of seconds, got {timeout!r}")


class Client:
    """An HTTP client with request and response interceptor chains.

    Args:
        config: A :class:`~onionhttp.models.ClientConfig` or a mapping of its
            fields. Unknown keys are kept and copied into every request's
            options.
        transport: The network primitive. Defaults to an
            :class:`~onionhttp.client.transport.HttpxTransport` honouring
            ``verify_ssl`` and ``follow_redirects``.
        global_registry: The shared registry. Defaults to
            :data:`~onionhttp.interceptors.registry.GLOBAL_REGISTRY`.
        **config_kwargs: Config fields given as keywords; they override
            *config*.

    Attributes:
        interceptors: ``interceptors.request`` and ``interceptors.response``
            registration surfaces.

    Example::

        api = Client(prefix="https://api.example.com", timeout=10)
        api.interceptors.request.use(add_token, global_=False)
        async with api:
            users = await api.get("/users")
    """

    def __init__(
        self,
        config: ConfigLike = None,
        *,
        transport: Optional[Transport] = None,
        global_registry: Optional[InterceptorRegistry] = None,
        **config_kwargs: Any,
    ) -> None:
        self._config = _build_config(config, config_kwargs)
        self._registry = InterceptorRegistry(Scope.INSTANCE)
        self._global_registry = global_registry if global_registry is not None else GLOBAL_REGISTRY
        self.interceptors = Interceptors(self._registry, self._global_registry)
        self._transport: Transport = transport or HttpxTransport(
            verify=self._config.verify_ssl,
            follow_redirects=self._config.follow_redirects,
        )
        self._pipeline = RequestPipeline(self._transport, self._global_registry, self._registry)

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #

    def __call__(
        self,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> Awaitable[Any]:
        """Start a request.

        The URL and timeout checks and the interceptor chain resolution happen
        before any coroutine is created: a bad URL raises right here, and
        interceptors registered after this call do not run for this request.

        Args:
            url: Request URL; ``prefix`` and ``suffix`` are applied.
            options: Per-request options (``method``, ``headers``,
                ``params``, ``data``, ``timeout``, ``get_response``,
                ``response_type``, ``request_type``, ``raise_for_status``,
                ``cancel_token`` or any custom key).
            **kwargs: Options given as keywords; they override *options*.

        Returns:
            An awaitable resolving to the parsed body, or a
            :class:`~onionhttp.models.FullResponse` with ``get_response``.

        Raises:
            ValidationError: If *url* is not a string, or the ``timeout``
                option is not a positive number of seconds.
        """
        if not isinstance(url, str):
            raise ValidationError(URL_MUST_BE_STRING)
        merged = self._merge_options(options, kwargs)
        _check_timeout(merged.get("timeout"))
        return self._pipeline.start(self._build_url(url), merged)

    request = __call__

    def get(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "GET"})

    def post(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "POST"})

    def put(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "PUT"})

    def patch(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "PATCH"})

    def delete(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "DELETE"})

    def head(self, url: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Awaitable[Any]:
        return self(url, options, **{**kwargs, "method": "HEAD"})

    # ------------------------------------------------------------------ #
    # Factory
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def registry(self) -> InterceptorRegistry:
        """This client's private (instance-scope) registry."""
        return self._registry

    def extend(self, config: ConfigLike = None, **kwargs: Any) -> Client:
        """Return a new client derived from this one.

        The new client starts from this client's configuration updated with
        *config* and *kwargs*; ``headers`` and ``params`` are merged key by
        key. It shares the transport and the global registry, and gets its
        own empty instance registry.
        """
        if isinstance(config, ClientConfig):
            # Unset fields keep the parent's values.
            updates = {name: getattr(config, name) for name in config.model_fields_set}
            updates.update(config.model_extra or {})
        else:
            updates = dict(config or {})
        updates.update(kwargs)
        merged = self._config.model_dump()
        for key in ("headers", "params"):
            if key in updates:
                updates[key] = {**merged[key], **updates[key]}
        merged.update(updates)
        return Client(
            merged,
            transport=self._transport,
            global_registry=self._global_registry,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_url(self, url: str) -> str:
        return f"{self._config.prefix}{url}{self._config.suffix}"

    def _merge_options(
        self,
        options: Optional[Mapping[str, Any]],
        kwargs: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Build the fresh options dict owned by one invocation.

        Config defaults come first, then *options*, then *kwargs*. Headers
        and params are merged into new dicts so that interceptors mutating
        them in place never touch the config or another invocation.
        """
        merged = self._config.request_defaults()
        caller: dict[str, Any] = {**(options or {}), **kwargs}
        headers = {**merged["headers"], **(caller.pop("headers", None) or {})}
        params = {**merged["params"], **(caller.pop("params", None) or {})}
        merged.update(caller)
        merged["headers"] = headers
        merged["params"] = params
        merged.setdefault("method", "GET")
        return merged

    def __repr__(self) -> str:
        return f"Client(prefix={self._config.prefix!r}, interceptors={len(self._registry)})"


request = Client()
"""The ambient default client."""


def extend(config: ConfigLike = None, **kwargs: Any) -> Client:
    """Create a new client with its own configuration and instance registry."""
    return Client(config, **kwargs)
