"""Response wrapper and body parsing.

:class:`Response` is what response interceptors and callers see. It wraps an
:class:`httpx.Response`, exposes a mutable :class:`ResponseHeaders` accessor
(interceptors may ``append`` headers), and reads the body lazily through
``await response.json()`` / ``text()`` / ``read()``.

:func:`parse_body` turns a settled response into the value returned to the
caller according to the ``response_type`` option.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Optional

import httpx

from onionhttp.models import ResponseType


class ResponseHeaders:
    """Case-insensitive, multi-valued header accessor.

    Backed by :class:`httpx.Headers`. :meth:`get` joins repeated headers with
    ``", "``, the way :class:`httpx.Headers` does.
    """

    def __init__(self, headers: httpx.Headers) -> None:
        self._headers = httpx.Headers(headers)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the header value, or *default* when absent."""
        return self._headers.get(name, default)

    def get_list(self, name: str) -> list[str]:
        """Return every value of a repeated header."""
        return self._headers.get_list(name)

    def append(self, name: str, value: str) -> None:
        """Add a value without dropping existing ones."""
        self._headers = httpx.Headers([*self._headers.multi_items(), (name, value)])

    def set(self, name: str, value: str) -> None:
        """Replace every value of *name* with *value*."""
        self._headers[name] = value

    def delete(self, name: str) -> None:
        """Remove *name* if present."""
        if name in self._headers:
            del self._headers[name]

    def items(self) -> list[tuple[str, str]]:
        return self._headers.multi_items()

    def to_httpx(self) -> httpx.Headers:
        return httpx.Headers(self._headers)

    def __contains__(self, name: object) -> bool:
        return name in self._headers

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"ResponseHeaders({self._headers.multi_items()!r})"


class Response:
    """A transport response as seen by response interceptors.

    Args:
        raw: The underlying :class:`httpx.Response`.

    Attributes:
        headers: Mutable :class:`ResponseHeaders`; changes made by
            interceptors are visible to later interceptors and the caller.
    """

    def __init__(self, raw: httpx.Response) -> None:
        self._raw = raw
        self.headers = ResponseHeaders(raw.headers)

    @property
    def raw(self) -> httpx.Response:
        return self._raw

    @property
    def status(self) -> int:
        return self._raw.status_code

    @property
    def ok(self) -> bool:
        """``True`` for 2xx statuses."""
        return 200 <= self._raw.status_code < 300

    @property
    def reason(self) -> str:
        return self._raw.reason_phrase

    @property
    def url(self) -> str:
        """The final URL of the request, after redirects."""
        try:
            return str(self._raw.url)
        except RuntimeError:
            # Responses built without a request (tests, stubs) carry no URL.
            return ""

    async def read(self) -> bytes:
        """Return the body bytes, reading the stream on first access."""
        return await self._raw.aread()

    async def text(self) -> str:
        await self.read()
        return self._raw.text

    async def json(self) -> Any:
        await self.read()
        return self._raw.json()

    def __repr__(self) -> str:
        return f"<Response [{self.status}] {self.url}>"


async def parse_body(response: Response, response_type: str = ResponseType.JSON.value) -> Any:
    """Extract the body of *response* according to *response_type*.

    * ``json`` -- decoded JSON; falls back to the raw text when the body is
      not valid JSON, and returns ``None`` for an empty body.
    * ``text`` -- the decoded text.
    * ``bytes`` -- the raw bytes.

    Args:
        response: The settled response.
        response_type: One of the :class:`~onionhttp.models.ResponseType`
            values.

    Returns:
        The parsed body.

    Raises:
        ValueError: If *response_type* is unknown.
    """
    kind = ResponseType(response_type)
    if kind is ResponseType.BYTES:
        return await response.read()
    if kind is ResponseType.TEXT:
        return await response.text()

    content = await response.read()
    if not content:
        return None
    try:
        return await response.json()
    except ValueError:
        return await response.text()
