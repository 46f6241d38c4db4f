"""Exception hierarchy for onionhttp.

All exceptions inherit from :class:`OnionHttpError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`onionhttp.exit_codes`.
Library code raises these; the command line entry point in
:func:`onionhttp.app.main` catches ``OnionHttpError`` and exits with the
matching code.

Subclass hierarchy::

    OnionHttpError (exit 1)
    +-- ConfigurationError   (exit 2)
    +-- ValidationError      (exit 2)
    +-- ChainError           (exit 10)
    +-- TransportError       (exit 6)
    |   +-- TimeoutError_    (exit 6)
    |   +-- ResponseError    (exit 5)
    +-- CancelledError       (exit 130)
    +-- ConfigError          (exit 1)

``ConfigurationError`` and ``ValidationError`` are raised synchronously at
the point of misuse. Every other error surfaces when the request is awaited,
and the caller always receives the original exception object of the first
failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from onionhttp.exit_codes import (
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INTERCEPTOR_ERROR,
    EXIT_INVALID_USAGE,
)

if TYPE_CHECKING:
    from onionhttp.client.cancel import Cancel
    from onionhttp.client.response import Response
    from onionhttp.models import Phase


class OnionHttpError(Exception):
    """Base exception for all onionhttp errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(OnionHttpError):
    """Raised when an interceptor is registered with a non-callable handler."""

    exit_code = EXIT_INVALID_USAGE


class ValidationError(OnionHttpError):
    """Raised when a client is invoked with malformed input, e.g. a non-string URL."""

    exit_code = EXIT_INVALID_USAGE


class ChainError(OnionHttpError):
    """Record of an interceptor failure inside a composed chain.

    The composer wraps the first failure of a chain in a ``ChainError`` so the
    pipeline knows which phase and which link failed. It is a record, not a
    replacement: :meth:`raise_original` re-raises the untouched exception the
    interceptor produced.

    Attributes:
        error: The exception raised by the interceptor (or by the
            cancellation checkpoint that ran before it).
        phase: The phase whose chain failed.
        index: Zero-based position of the failing link in the resolved chain.
    """

    exit_code = EXIT_INTERCEPTOR_ERROR

    def __init__(self, error: BaseException, phase: Phase, index: int):
        super().__init__(
            f"{phase.value} interceptor #{index} failed: {error}"
        )
        self.error = error
        self.phase = phase
        self.index = index

    def raise_original(self) -> None:
        """Re-raise the interceptor's own exception."""
        raise self.error


class TransportError(OnionHttpError):
    """Raised on network-level failures reported by the transport."""

    exit_code = EXIT_CONNECTION_ERROR


class TimeoutError_(TransportError):
    """Raised when the transport stage outlives the configured timeout.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout


class ResponseError(TransportError):
    """Raised when the server answers with a non-2xx status and
    ``raise_for_status`` is enabled.

    Attributes:
        status: The HTTP status code.
        response: The :class:`~onionhttp.client.response.Response` received.
        data: The parsed response body (JSON, text, bytes or ``None``).
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(self, message: str, response: Response, data: Any = None):
        super().__init__(message)
        self.response = response
        self.status = response.status
        self.data = data


class CancelledError(OnionHttpError):
    """Raised when a request is cancelled through its cancel token.

    Attributes:
        reason: The :class:`~onionhttp.client.cancel.Cancel` passed to
            :meth:`~onionhttp.client.cancel.CancelToken.cancel`.
    """

    exit_code = EXIT_CANCELLED

    def __init__(self, message: str, reason: Cancel | None = None):
        super().__init__(message)
        self.reason = reason


class ConfigError(OnionHttpError):
    """Raised for configuration problems (invalid JSON, bad environment values)."""

    exit_code = EXIT_GENERIC_FAILURE
