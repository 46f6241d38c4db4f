"""Pydantic models and small value types shared across onionhttp.

This is the single source of truth for data shapes in the project:

**Interceptor models** -- :class:`Phase`, :class:`Scope`, and
:class:`InterceptorEntry`, created by the registries in
:mod:`onionhttp.interceptors.registry`.

**Request models** -- :class:`RequestState`, the ``(url, options)`` pair
threaded through the request chain, and :class:`FullResponse`, returned to
callers that ask for ``get_response``.

**Configuration models** -- :class:`ClientConfig`, the per-client defaults
merged into every request's options. It uses ``extra="allow"`` so that
caller-defined keys are preserved in ``model_extra`` and passed through to
interceptors and the transport.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from onionhttp.client.response import Response


# --- Interceptors ---


class Phase(str, enum.Enum):
    """The chain an interceptor belongs to."""

    REQUEST = "request"
    RESPONSE = "response"


class Scope(str, enum.Enum):
    """Where an interceptor entry is stored.

    ``GLOBAL`` entries live in the process-wide registry and run for every
    client; ``INSTANCE`` entries live in one client's private registry.
    """

    GLOBAL = "global"
    INSTANCE = "instance"


class InterceptorEntry(BaseModel):
    """One registered interceptor.

    Entries are immutable once created. ``order`` is drawn from a single
    process-wide counter at registration time, so it reflects arrival order
    across every registry. Registries remove entries by identity, never by
    value, so registering the same handler twice yields two independent
    entries.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    phase: Phase
    scope: Scope
    handler: Callable[..., Any]
    order: int = Field(ge=0)

    @property
    def name(self) -> str:
        """Best-effort display name of the handler, used in log messages."""
        return getattr(self.handler, "__qualname__", None) or repr(self.handler)


# --- Requests ---


class RequestState(NamedTuple):
    """The in-flight request: a URL and its options mapping."""

    url: str
    options: dict[str, Any]


@dataclass
class FullResponse:
    """Return value of a request made with ``get_response=True``.

    Attributes:
        data: The parsed body (see ``response_type``).
        response: The :class:`~onionhttp.client.response.Response` after the
            response chain ran.
    """

    data: Any
    response: Response


class ResponseType(str, enum.Enum):
    """How the settled response body is parsed."""

    JSON = "json"
    TEXT = "text"
    BYTES = "bytes"


class RequestType(str, enum.Enum):
    """How a non-string ``data`` option is encoded by the transport."""

    JSON = "json"
    FORM = "form"


# --- Configuration ---


class ClientConfig(BaseModel):
    """Per-client defaults merged into the options of every request.

    Created by :class:`~onionhttp.client.async_client.Client` and by
    :meth:`~onionhttp.client.async_client.Client.extend`. Per-request options
    always win over these defaults; ``headers`` and ``params`` are merged
    key by key.

    Example::

        ClientConfig(
            prefix="https://api.example.com",
            headers={"Accept": "application/json"},
            timeout=10,
        )
    """

    model_config = ConfigDict(extra="allow")

    prefix: str = Field(default="", description="Prepended to every request URL")
    suffix: str = Field(default="", description="Appended to every request URL")
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Transport timeout in seconds; None is unbounded"
    )
    get_response: bool = Field(
        default=False, description="Return FullResponse(data, response) instead of data"
    )
    response_type: ResponseType = ResponseType.JSON
    request_type: RequestType = RequestType.JSON
    raise_for_status: bool = Field(
        default=True, description="Raise ResponseError for non-2xx responses"
    )
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    follow_redirects: bool = True

    def request_defaults(self) -> dict[str, Any]:
        """Return the option keys every request starts from.

        ``verify_ssl`` and ``follow_redirects`` configure the transport and
        ``prefix``/``suffix`` are applied to the URL, so they are left out.
        """
        defaults: dict[str, Any] = {
            "headers": dict(self.headers),
            "params": dict(self.params),
            "timeout": self.timeout,
            "get_response": self.get_response,
            "response_type": self.response_type.value,
            "request_type": self.request_type.value,
            "raise_for_status": self.raise_for_status,
        }
        defaults.update(self.model_extra or {})
        return defaults
