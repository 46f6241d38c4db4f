"""Request pipeline -- drives one invocation from options to settled value.

Each invocation walks these stages::

    BUILDING -> REQUEST_CHAIN -> TRANSPORTING -> RESPONSE_CHAIN -> SETTLED

* **BUILDING** -- the interceptor chains are resolved once, when the client is
  called (a snapshot of the global and instance registries) and the seed
  :class:`~onionhttp.models.RequestState` is created.
* **REQUEST_CHAIN** -- the composed request chain runs over
  ``(url, options)``. A failure ends the invocation; the transport is never
  called.
* **TRANSPORTING** -- the transport sends the resolved request, bounded by
  the ``timeout`` option and raced against the ``cancel_token`` option.
  With ``raise_for_status`` a non-2xx status fails here.
* **RESPONSE_CHAIN** -- the composed response chain runs over
  ``(response, options)`` where ``options`` are those the request chain
  produced.
* **SETTLED** -- the body is parsed per ``response_type`` and returned,
  wrapped in a :class:`~onionhttp.models.FullResponse` when ``get_response``
  is set.

Failures always propagate the original exception of the first failing step.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Awaitable, Optional

from onionhttp.client.cancel import CancelToken
from onionhttp.client.response import Response, parse_body
from onionhttp.client.transport import Transport
from onionhttp.exceptions import ResponseError, TimeoutError_
from onionhttp.interceptors.onion import Onion
from onionhttp.interceptors.registry import InterceptorRegistry
from onionhttp.interceptors.scope import ChainSnapshot, snapshot
from onionhttp.models import FullResponse, Phase, RequestState

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    """Lifecycle stages of one invocation."""

    BUILDING = "building"
    REQUEST_CHAIN = "request-chain"
    TRANSPORTING = "transporting"
    RESPONSE_CHAIN = "response-chain"
    SETTLED = "settled"


class RequestPipeline:
    """Runs invocations for one client.

    The pipeline holds no per-request state; concurrent :meth:`run` calls are
    independent.

    Args:
        transport: The network primitive.
        global_registry: The process-wide interceptor registry.
        instance_registry: The owning client's private registry.
    """

    def __init__(
        self,
        transport: Transport,
        global_registry: InterceptorRegistry,
        instance_registry: InterceptorRegistry,
    ) -> None:
        self._transport = transport
        self._global = global_registry
        self._instance = instance_registry
        self._request_onion = Onion(Phase.REQUEST)
        self._response_onion = Onion(Phase.RESPONSE)

    @property
    def transport(self) -> Transport:
        return self._transport

    def start(self, url: str, options: dict[str, Any]) -> Awaitable[Any]:
        """Resolve the chains now and return the awaitable invocation.

        Interceptors registered after this call do not take part in the
        returned invocation, even if it has not been awaited yet.
        """
        return self.run(url, options, snapshot(self._global, self._instance))

    async def run(
        self,
        url: str,
        options: dict[str, Any],
        chains: Optional[ChainSnapshot] = None,
    ) -> Any:
        """Run one invocation and return the settled value.

        Args:
            url: The request URL, already validated and prefixed.
            options: A fresh options dict owned by this invocation.
            chains: Chains resolved by :meth:`start`. When omitted they are
                resolved when the coroutine first runs.

        Returns:
            The parsed body, or a :class:`~onionhttp.models.FullResponse`
            when ``options["get_response"]`` is true.

        Raises:
            CancelledError: The cancel token was triggered.
            TimeoutError_: The transport stage outlived ``options["timeout"]``.
            ResponseError: Non-2xx status with ``raise_for_status``.
            TransportError: The transport failed.
            Exception: Whatever a failing interceptor raised, unchanged.
        """
        stage = Stage.BUILDING
        token: Optional[CancelToken] = options.get("cancel_token")
        checkpoint = token.throw_if_requested if token is not None else None

        try:
            if chains is None:
                chains = snapshot(self._global, self._instance)
            state = RequestState(url, options)
            logger.debug(
                "Starting %s %s with %d request / %d response interceptors",
                options.get("method", "GET"), url,
                len(chains.request), len(chains.response),
            )

            stage = Stage.REQUEST_CHAIN
            run_request_chain = self._request_onion.compose(chains.request, checkpoint)
            state = (await run_request_chain(state)).unwrap()

            stage = Stage.TRANSPORTING
            response = await self._send(state, token)

            stage = Stage.RESPONSE_CHAIN
            run_response_chain = self._response_onion.compose(chains.response, checkpoint)
            response = (await run_response_chain(response, state.options)).unwrap()

            stage = Stage.SETTLED
            if checkpoint is not None:
                checkpoint()
            return await self._settle(response, state.options)
        except Exception as exc:
            logger.debug("Request to %s failed during %s: %r", url, stage.value, exc)
            raise

    async def _send(self, state: RequestState, token: Optional[CancelToken]) -> Response:
        url, options = state
        if token is not None:
            token.throw_if_requested()

        timeout = options.get("timeout")
        coro = self._transport.send(url, options)
        if token is not None:
            coro = _race_cancel(coro, token)

        try:
            if timeout is not None:
                response = await asyncio.wait_for(coro, timeout)
            else:
                response = await coro
        except asyncio.TimeoutError:
            raise TimeoutError_(
                f"timeout of {timeout}s exceeded", timeout=timeout
            ) from None

        if options.get("raise_for_status", True) and not response.ok:
            data = await parse_body(response, options.get("response_type", "json"))
            prefix = f"HTTP {response.status}"
            message = f"{prefix}: {response.reason}" if response.reason else prefix
            raise ResponseError(message, response=response, data=data)
        return response

    async def _settle(self, response: Response, options: dict[str, Any]) -> Any:
        data = await parse_body(response, options.get("response_type", "json"))
        if options.get("get_response"):
            return FullResponse(data=data, response=response)
        return data


async def _race_cancel(coro: Any, token: CancelToken) -> Response:
    """Await *coro* unless *token* fires first, cancelling the loser."""
    send_task = asyncio.ensure_future(coro)
    cancel_task = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (send_task, cancel_task):
            if not task.done():
                task.cancel()

    token.throw_if_requested()
    return send_task.result()
