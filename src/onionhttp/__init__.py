"""onionhttp -- an async HTTP client built around interceptor chains.

Every request runs through two chains of user-supplied interceptors, one
before the network call and one after it. Interceptors can be registered
globally (shared by every client in the process) or on a single client, and
may be plain functions or coroutines::

    from onionhttp import extend, request

    request.interceptors.request.use(
        lambda url, options: {"url": url, "options": {**options, "trace": True}}
    )

    api = extend(prefix="https://api.example.com")
    api.interceptors.response.use(check_envelope, global_=False)

    users = await api.get("/users")

Modules:
    interceptors: Registries, scope resolution, and the onion composer.
    client: Client facade, request pipeline, transport, responses, cancel tokens.
    models: Pydantic models and value types shared across the package.
    config: Config files, environment overrides, and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting for the command line.
    app: Typer command line entry point.
"""

__version__ = "0.1.0"

from onionhttp.client import (  # noqa: E402
    Cancel,
    CancelToken,
    Client,
    HttpxTransport,
    Response,
    extend,
    fetch,
    is_cancel,
    request,
)
from onionhttp.exceptions import (  # noqa: E402
    CancelledError,
    ChainError,
    ConfigError,
    ConfigurationError,
    OnionHttpError,
    ResponseError,
    TimeoutError_,
    TransportError,
    ValidationError,
)
from onionhttp.interceptors import GLOBAL_REGISTRY, Onion  # noqa: E402
from onionhttp.models import ClientConfig, FullResponse, Phase, RequestState, Scope  # noqa: E402

__all__ = [
    "Cancel",
    "CancelToken",
    "CancelledError",
    "ChainError",
    "Client",
    "ClientConfig",
    "ConfigError",
    "ConfigurationError",
    "FullResponse",
    "GLOBAL_REGISTRY",
    "HttpxTransport",
    "OnionHttpError",
    "Onion",
    "Phase",
    "RequestState",
    "Response",
    "ResponseError",
    "Scope",
    "TimeoutError_",
    "TransportError",
    "ValidationError",
    "extend",
    "fetch",
    "is_cancel",
    "request",
]
