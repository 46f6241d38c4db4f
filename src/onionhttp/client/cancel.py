"""Cancellation tokens.

A :class:`CancelToken` is passed to a request as the ``cancel_token`` option.
The pipeline checks it before every interceptor, before and during the
transport call (the in-flight network task is cancelled), and before
settling. A triggered token makes the request fail with
:class:`~onionhttp.exceptions.CancelledError`.

Example::

    source = CancelToken.source()
    task = asyncio.create_task(request("/slow", cancel_token=source.token))
    source.cancel("user navigated away")
"""

from __future__ import annotations

import asyncio
from typing import Callable, NamedTuple, Optional, cast

from onionhttp.exceptions import CancelledError

DEFAULT_CANCEL_MESSAGE = "Request cancelled"


class Cancel:
    """The reason a token was cancelled."""

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message

    def __str__(self) -> str:
        return f"Cancel: {self.message}" if self.message else "Cancel"

    def __repr__(self) -> str:
        return f"Cancel({self.message!r})"


class CancelTokenSource(NamedTuple):
    """A token together with the function that cancels it."""

    token: CancelToken
    cancel: Callable[..., None]


class CancelToken:
    """One-shot cancellation signal shared between a caller and a request."""

    def __init__(self) -> None:
        self._reason: Optional[Cancel] = None
        self._event = asyncio.Event()

    @classmethod
    def source(cls) -> CancelTokenSource:
        token = cls()
        return CancelTokenSource(token=token, cancel=token.cancel)

    @property
    def requested(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[Cancel]:
        return self._reason

    def cancel(self, message: Optional[str] = None) -> None:
        """Trigger the token. Only the first call has an effect."""
        if self._reason is not None:
            return
        self._reason = Cancel(message)
        self._event.set()

    def throw_if_requested(self) -> None:
        """Raise :class:`~onionhttp.exceptions.CancelledError` if triggered."""
        if self._reason is not None:
            raise CancelledError(
                self._reason.message or DEFAULT_CANCEL_MESSAGE, reason=self._reason
            )

    async def wait(self) -> Cancel:
        """Block until the token is triggered and return the reason."""
        await self._event.wait()
        # The event is only set by cancel(), after the reason is stored.
        return cast(Cancel, self._reason)


def is_cancel(error: BaseException) -> bool:
    """Return ``True`` if *error* was produced by a cancel token."""
    return isinstance(error, CancelledError)
