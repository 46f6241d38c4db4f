"""Numeric process exit codes for the ``onionhttp`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~onionhttp.exceptions.OnionHttpError` subclass.
Shell scripts wrapping the CLI can inspect the exit code to tell a bad
invocation from a network failure without parsing stderr.

Example::

    $ onionhttp request GET http://localhost:1/nothing
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the transport could not connect
"""

EXIT_SUCCESS = 0
"""The request completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (bad URL, bad interceptor)."""

EXIT_HTTP_ERROR = 5
"""The server answered with a non-2xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERCEPTOR_ERROR = 10
"""An interceptor raised while processing the request or response."""

EXIT_CANCELLED = 130
"""The request was cancelled before it settled."""
