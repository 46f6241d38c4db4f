"""HTTP client module for onionhttp.

Provides the callable :class:`Client`, the pipeline that runs each
invocation through the interceptor chains, and the collaborators it relies
on: the httpx-backed transport, the response wrapper, and cancel tokens.

Classes:
    :class:`Client` -- callable async client with ``interceptors`` and
    ``extend``.
    :class:`RequestPipeline` -- drives one invocation through every stage.
    :class:`HttpxTransport` -- default :class:`Transport`.
    :class:`Response` -- what response interceptors receive.
    :class:`CancelToken` -- cooperative cancellation.

Example::

    from onionhttp.client import extend

    api = extend(prefix="https://api.example.com")
    async with api:
        user = await api.get("/users/1")
"""

from onionhttp.client.async_client import Client, extend, request
from onionhttp.client.cancel import Cancel, CancelToken, CancelTokenSource, is_cancel
from onionhttp.client.pipeline import RequestPipeline, Stage
from onionhttp.client.response import Response, ResponseHeaders, parse_body
from onionhttp.client.transport import HttpxTransport, Transport, fetch

__all__ = [
    "Cancel",
    "CancelToken",
    "CancelTokenSource",
    "Client",
    "HttpxTransport",
    "RequestPipeline",
    "Response",
    "ResponseHeaders",
    "Stage",
    "Transport",
    "extend",
    "fetch",
    "is_cancel",
    "parse_body",
    "request",
]
