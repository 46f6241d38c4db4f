"""Transport -- the network primitive the pipeline wraps.

The pipeline only needs :class:`Transport`: ``await send(url, options)``
returning a :class:`~onionhttp.client.response.Response`, or raising
:class:`~onionhttp.exceptions.TransportError`. :class:`HttpxTransport` is
the default implementation, backed by :class:`httpx.AsyncClient`.

Unless an :class:`httpx.AsyncClient` is injected, every call opens and
closes its own client. Connection reuse is left to callers who pass one in.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from onionhttp.client.response import Response
from onionhttp.exceptions import TimeoutError_, TransportError
from onionhttp.models import RequestType

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Sends one fully resolved request."""

    async def send(self, url: str, options: dict[str, Any]) -> Response:
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """Transport backed by :mod:`httpx`.

    Recognized option keys: ``method`` (default ``GET``), ``headers``,
    ``params``, ``data``, ``request_type`` and ``timeout``. Everything else
    is ignored here.

    ``data`` encoding: ``str`` and ``bytes`` are sent as-is; any other value
    is sent as JSON, or form-encoded when ``request_type`` is ``"form"``.

    Args:
        client: Optional externally managed :class:`httpx.AsyncClient`. It
            is closed by :meth:`aclose`.
        verify: Verify TLS certificates (ignored when *client* is given).
        follow_redirects: Follow redirects (ignored when *client* is given).

    Example::

        transport = HttpxTransport(client=httpx.AsyncClient(transport=mock))
        response = await transport.send("https://api.example.com/users", {})
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        verify: bool = True,
        follow_redirects: bool = True,
    ) -> None:
        self._client = client
        self._verify = verify
        self._follow_redirects = follow_redirects

    async def send(self, url: str, options: dict[str, Any]) -> Response:
        """Send the request and return the read response.

        Raises:
            TimeoutError_: When httpx reports a timeout.
            TransportError: On any other network-level failure.
        """
        kwargs = self._build_request_kwargs(url, options)
        logger.debug("Sending %s %s", kwargs["method"], url)

        try:
            if self._client is not None:
                raw = await self._client.request(**kwargs)
            else:
                async with httpx.AsyncClient(
                    verify=self._verify,
                    follow_redirects=self._follow_redirects,
                ) as client:
                    raw = await client.request(**kwargs)
            await raw.aread()
        except httpx.TimeoutException as exc:
            raise TimeoutError_(
                f"Request to {url} timed out: {exc}", timeout=options.get("timeout")
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        logger.debug("Received %d from %s", raw.status_code, url)
        return Response(raw)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    def _build_request_kwargs(self, url: str, options: dict[str, Any]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "method": str(options.get("method") or "GET").upper(),
            "url": url,
            "headers": dict(options.get("headers") or {}),
            "timeout": options.get("timeout"),
        }
        params = options.get("params")
        if params:
            kwargs["params"] = params

        data = options.get("data")
        if data is not None:
            if isinstance(data, (str, bytes)):
                kwargs["content"] = data
            elif options.get("request_type") == RequestType.FORM.value:
                kwargs["data"] = data
            else:
                kwargs["json"] = data
        return kwargs


_default_transport = HttpxTransport()


async def fetch(url: str, options: Optional[dict[str, Any]] = None) -> Response:
    """Send a single request with the default transport and no interceptors."""
    return await _default_transport.send(url, dict(options or {}))
