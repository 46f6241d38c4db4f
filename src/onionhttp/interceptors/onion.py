"""Onion composer -- folds an ordered interceptor chain into one async function.

Every interceptor wraps the next: running the composed function runs each
handler in turn over a progressively updated value. The composition is an
explicit fold rather than nested callbacks:

1. The running value starts as the seed (a
   :class:`~onionhttp.models.RequestState` or a response).
2. For each entry the optional ``checkpoint`` runs first (the pipeline uses
   it to observe cancellation), then the handler is called and its result
   awaited for as long as it is awaitable.
3. The result is normalized to :data:`NO_CHANGE` or :class:`Replace`.
4. The first exception stops the fold and is returned as a
   :class:`Failure` wrapping a :class:`~onionhttp.exceptions.ChainError`.

Handlers never run concurrently; each one sees the previous one's output.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from onionhttp.exceptions import ChainError
from onionhttp.models import InterceptorEntry, Phase, RequestState

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ------------------------------------------------------------------ #
# Interceptor result variants
# ------------------------------------------------------------------ #


class _NoChange:
    """The interceptor left the running value alone."""

    _instance: Optional[_NoChange] = None

    def __new__(cls) -> _NoChange:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_CHANGE"


NO_CHANGE = _NoChange()


@dataclass(frozen=True)
class Replace(Generic[T]):
    """The interceptor produced a new running value."""

    value: T


StepResult = Union[_NoChange, Replace[Any]]


# ------------------------------------------------------------------ #
# Chain outcomes
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class Success(Generic[T]):
    """The whole chain ran; ``value`` is the final running value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """A link of the chain raised; later links did not run."""

    error: ChainError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Re-raise the original exception of the failing link."""
        self.error.raise_original()


Outcome = Union[Success[Any], Failure]


# ------------------------------------------------------------------ #
# Normalization
# ------------------------------------------------------------------ #


async def resolve(result: Any) -> Any:
    """Await *result* until it is no longer awaitable."""
    while inspect.isawaitable(result):
        result = await result
    return result


def normalize_request_result(result: Any, current: RequestState) -> StepResult:
    """Map a request interceptor's return value onto a step variant.

    Accepted shapes: ``None`` or an empty mapping (no change), a
    :class:`~onionhttp.models.RequestState`, a ``(url, options)`` tuple, or a
    mapping with ``url`` and/or ``options`` keys where a missing key keeps the
    current value.

    Raises:
        TypeError: For any other shape, or when the new URL is not a string
            or the new options are not a mapping.
    """
    if result is None:
        return NO_CHANGE

    if isinstance(result, RequestState):
        url, options = result
    elif isinstance(result, tuple) and len(result) == 2:
        url, options = result
    elif isinstance(result, Mapping):
        if not result:
            return NO_CHANGE
        url = result["url"] if "url" in result else current.url
        options = result["options"] if "options" in result else current.options
    else:
        raise TypeError(
            "request interceptor must return None, a mapping with 'url'/'options', "
            f"or a (url, options) pair, got {type(result).__name__}"
        )

    if not isinstance(url, str):
        raise TypeError(f"request interceptor returned a non-string url: {url!r}")
    if not isinstance(options, Mapping):
        raise TypeError(
            f"request interceptor returned non-mapping options: {type(options).__name__}"
        )
    return Replace(RequestState(url, dict(options)))


def normalize_response_result(result: Any, current: Any) -> StepResult:
    """Map a response interceptor's return value onto a step variant.

    ``None`` keeps the current response. A
    :class:`~onionhttp.client.response.Response` replaces it; a bare
    :class:`httpx.Response` is wrapped first.

    Raises:
        TypeError: For any other return value.
    """
    import httpx

    from onionhttp.client.response import Response

    if result is None:
        return NO_CHANGE
    if isinstance(result, Response):
        return Replace(result)
    if isinstance(result, httpx.Response):
        return Replace(Response(result))
    raise TypeError(
        "response interceptor must return None or a response, "
        f"got {type(result).__name__}"
    )


# ------------------------------------------------------------------ #
# Composer
# ------------------------------------------------------------------ #


ComposedChain = Callable[..., Awaitable[Outcome]]


class Onion:
    """Composes the interceptor chain of one phase.

    Example::

        chain = Onion(Phase.REQUEST).compose(entries)
        outcome = await chain(RequestState(url, options))
        state = outcome.unwrap()

    For the response phase the composed function takes the response and the
    request options: ``await chain(response, options)``.
    """

    def __init__(self, phase: Phase) -> None:
        self._phase = phase

    @property
    def phase(self) -> Phase:
        return self._phase

    def compose(
        self,
        entries: Sequence[InterceptorEntry],
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> ComposedChain:
        """Fold *entries* into a single async function.

        Args:
            entries: The resolved chain, already in execution order. The
                sequence is copied, so later changes to it are not seen.
            checkpoint: Called before every link; raising from it fails the
                chain like a failing interceptor would.

        Returns:
            An async function returning a :class:`Success` or a
            :class:`Failure`.
        """
        chain = tuple(entries)
        phase = self._phase

        if phase is Phase.REQUEST:

            async def run_request(seed: RequestState) -> Outcome:
                return await self._fold(
                    chain, seed, checkpoint,
                    call=lambda handler, state: handler(state.url, state.options),
                    normalize=normalize_request_result,
                )

            return run_request

        async def run_response(seed: Any, options: dict[str, Any]) -> Outcome:
            return await self._fold(
                chain, seed, checkpoint,
                call=lambda handler, response: handler(response, options),
                normalize=normalize_response_result,
            )

        return run_response

    async def _fold(
        self,
        chain: tuple[InterceptorEntry, ...],
        seed: Any,
        checkpoint: Optional[Callable[[], None]],
        call: Callable[[Callable[..., Any], Any], Any],
        normalize: Callable[[Any, Any], StepResult],
    ) -> Outcome:
        value = seed
        for index, entry in enumerate(chain):
            try:
                if checkpoint is not None:
                    checkpoint()
                result = await resolve(call(entry.handler, value))
                step = normalize(result, value)
            except Exception as exc:
                logger.debug(
                    "%s interceptor #%d '%s' failed: %r",
                    self._phase.value, index, entry.name, exc,
                )
                return Failure(ChainError(exc, self._phase, index))

            if isinstance(step, Replace):
                value = step.value
        return Success(value)
