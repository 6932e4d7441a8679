# app/client/retry.py

import asyncio
from typing import Awaitable, Callable, List, Optional, TypeVar
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_exponential
from config.settings import settings
from schemas.lobby_schema import CreateLobbyRequest, LobbyResponse
from client.gateway import RemoteLobbyGateway
from client.results import ErrorKind, Failure, Result
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(result: Result) -> bool:
    return isinstance(result, Failure) and result.kind is ErrorKind.TRANSIENT


def _log_retry(state: RetryCallState) -> None:
    result = state.outcome.result()
    logger.info(
        f"Transient failure ({result.error.message}), "
        f"retry {state.attempt_number} in {state.next_action.sleep:.1f}s"
    )


def _give_up(state: RetryCallState) -> Result:
    result = state.outcome.result()
    logger.warning(f"Giving up after {state.attempt_number} attempts: {result.error.message}")
    return result


async def retry_with_backoff(
    call: Callable[[], Awaitable[Result[T]]],
    *,
    max_attempts: Optional[int] = None,
    initial_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    multiplier: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Result[T]:
    """
    Run ``call`` until it stops failing with TRANSIENT

    The delay before retry n (0-based) is initial_delay * multiplier**n,
    capped at max_delay. Any other outcome, success or failure, is returned
    as soon as it is seen. The last TRANSIENT failure is returned when the
    attempts run out.

    Example:
        result = await retry_with_backoff(lambda: gateway.list_all())
    """
    max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS
    initial_delay = settings.RETRY_INITIAL_DELAY_SECONDS if initial_delay is None else initial_delay
    max_delay = settings.RETRY_MAX_DELAY_SECONDS if max_delay is None else max_delay
    multiplier = settings.RETRY_MULTIPLIER if multiplier is None else multiplier

    retrying = AsyncRetrying(
        retry=retry_if_result(is_transient),
        wait=wait_exponential(multiplier=initial_delay, max=max_delay, exp_base=multiplier),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        retry_error_callback=_give_up,
        sleep=sleep,
    )
    return await retrying(call)


class RetryingLobbyGateway(RemoteLobbyGateway):
    """
    Decorates a gateway with retry_with_backoff for the read operations

    create/join/leave are not idempotent from the server's point of view and
    pass straight through.
    """

    def __init__(self, inner: RemoteLobbyGateway, **policy):
        self._inner = inner
        self._policy = policy

    async def list_all(self) -> Result[List[LobbyResponse]]:
        return await retry_with_backoff(self._inner.list_all, **self._policy)

    async def get_by_id(self, lobby_id: str) -> Result[LobbyResponse]:
        return await retry_with_backoff(lambda: self._inner.get_by_id(lobby_id), **self._policy)

    async def create(self, draft: CreateLobbyRequest) -> Result[LobbyResponse]:
        return await self._inner.create(draft)

    async def join(self, lobby_id: str) -> Result[str]:
        return await self._inner.join(lobby_id)

    async def leave(self, lobby_id: str) -> Result[str]:
        return await self._inner.leave(lobby_id)
