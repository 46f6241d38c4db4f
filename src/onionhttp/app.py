"""Typer application and CLI entry point for onionhttp.

The ``onionhttp`` console script sends one request through the same client,
pipeline, and interceptor chains the library exposes::

    onionhttp request GET https://httpbin.org/get -p page=2 --include
    onionhttp --json request POST /users --prefix https://api.example.com \\
        -d '{"name": "ada"}' -H "Authorization: Bearer xyz"

Client defaults come from :func:`~onionhttp.config.resolve_client_config`,
so ``ONIONHTTP_*`` variables and ``onionhttp.json`` files apply. With
``--verbose`` the command registers instance-scope interceptors that trace
the outgoing request and the incoming response on stderr.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import Any, Optional

import typer

from onionhttp import __version__
from onionhttp.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="onionhttp",
    help="Send HTTP requests through onionhttp's interceptor chains.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"onionhttp {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace the interceptor chains on stderr."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the response body to a file."
    ),
) -> None:
    """Install the global output manager from the root flags."""
    from onionhttp.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@app.command("request")
def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST."),
    url: str = typer.Argument(..., help="Request URL (appended to --prefix)."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body; JSON is sent as JSON, anything else raw."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as 'key=value'. Repeatable."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Transport timeout in seconds."
    ),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="URL prefix."),
    form: bool = typer.Option(False, "--form", help="Form-encode the body."),
    include: bool = typer.Option(
        False, "--include", "-i", help="Print the status line and response headers."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", "-k", help="Skip TLS certificate verification."
    ),
) -> None:
    """Send one request and print the response body."""
    from onionhttp.config import resolve_client_config
    from onionhttp.exceptions import OnionHttpError, ResponseError
    from onionhttp.output import error, get_output

    verbose = bool((ctx.obj or {}).get("verbose"))
    options: dict[str, Any] = {
        "method": method.upper(),
        "headers": _parse_headers(header or []),
        "params": _parse_params(param or []),
        "get_response": True,
    }
    if data is not None:
        options["data"] = _parse_body(data)
    if form:
        options["request_type"] = "form"

    try:
        config = resolve_client_config(
            prefix=prefix,
            timeout=timeout,
            verify_ssl=False if insecure else None,
        )
        result = asyncio.run(_send(config, url, options, verbose))
    except ResponseError as exc:
        if include:
            _print_head(exc.response)
        get_output().print_body(exc.data, exc.response.headers.get("content-type") or "")
        error(str(exc))
        raise typer.Exit(exc.exit_code)
    except OnionHttpError as exc:
        error(str(exc))
        raise typer.Exit(exc.exit_code)

    if include:
        _print_head(result.response)
    content_type = result.response.headers.get("content-type") or "application/json"
    get_output().print_body(result.data, content_type)


async def _send(config: Any, url: str, options: dict[str, Any], verbose: bool) -> Any:
    """Build a client from *config* and run one invocation."""
    from onionhttp.client import extend

    client = extend(config)
    if verbose:
        client.interceptors.request.use(_trace_request, global_=False)
        client.interceptors.response.use(_trace_response, global_=False)
    async with client:
        return await client(url, options)


def _trace_request(url: str, options: dict[str, Any]) -> None:
    from onionhttp.output import trace

    trace(f"> {options.get('method', 'GET')} {url}")
    for name, value in (options.get("headers") or {}).items():
        trace(f"> {name}: {value}")


def _trace_response(response: Any, options: dict[str, Any]) -> None:
    from onionhttp.output import trace

    trace(f"< {response.status} {response.reason} ({response.url})")


def _print_head(response: Any) -> None:
    from onionhttp.output import get_output

    get_output().print_head(response.status, response.reason or "", response.headers.items())


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _parse_params(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected 'key=value', got {raw!r}", param_hint="--param")
        params[key] = value
    return params


def _parse_body(body: str) -> Any:  # noqa: ANN401
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``onionhttp`` console script.

    Library errors are reported by the ``request`` command itself with their
    ``exit_code``. Anything else escaping the Typer app is reported here and
    exits with :data:`~onionhttp.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from onionhttp.output import error

        error(f"Unexpected error: {exc!r}")
        sys.exit(EXIT_GENERIC_FAILURE)
