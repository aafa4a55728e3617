"""
Resilience Policies
===================
Retry with exponential backoff around a circuit breaker, for calls to the
Customers API.

The circuit breaker is the inner policy: it is checked on every attempt,
so once it opens the remaining retries are cut short with a
CircuitBreakerException, which is never retried.

Server faults (5xx) count as transient failures even though the HTTP
exchange itself succeeded, just like connection errors and timeouts.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from src.core.circuit_breaker import CircuitBreaker, register_circuit_breaker
from src.core.config import Config

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 3
DEFAULT_EXCEPTIONS_BEFORE_CIRCUIT_BREAK = 2
DEFAULT_CIRCUIT_BREAK_SECONDS = 60
BACKOFF_BASE_SECONDS = 0.5


def reports_server_error(response: httpx.Response) -> bool:
    """5xx status codes indicate a server-side error"""
    return response.status_code // 100 == 5


def raise_for_server_error(response: httpx.Response) -> httpx.Response:
    """Turns a 5xx answer into an HTTPStatusError so the policies see it as a failure"""
    if reports_server_error(response):
        raise httpx.HTTPStatusError(
            f"Server error: {response.status_code}",
            request=response.request,
            response=response
        )
    return response


def is_transient_error(error: BaseException) -> bool:
    """Connection errors, timeouts and 5xx answers are worth retrying"""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return reports_server_error(error.response)
    return False


def backoff_wait(retry_state: RetryCallState) -> float:
    """Wait before retry i (1-based) is 0.5 * 2^i seconds: 1s, 2s, 4s..."""
    return BACKOFF_BASE_SECONDS * (2 ** retry_state.attempt_number)


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"⚠️ Retry {retry_state.attempt_number} after {wait} seconds due to: {exception!r}"
    )


class ResiliencePolicy:
    """
    Retry + circuit breaker for one downstream dependency.

    Attributes:
        retry_count: Retries after the first attempt
        circuit_breaker: Breaker shared by every call made through the policy
    """

    def __init__(
        self,
        name: str = "customers_api",
        retry_count: int = DEFAULT_RETRY_COUNT,
        exceptions_before_circuit_break: int = DEFAULT_EXCEPTIONS_BEFORE_CIRCUIT_BREAK,
        circuit_break_seconds: float = DEFAULT_CIRCUIT_BREAK_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.retry_count = retry_count
        self._sleep = sleep
        self.circuit_breaker = register_circuit_breaker(CircuitBreaker(
            name=name,
            failure_threshold=exceptions_before_circuit_break,
            recovery_timeout=circuit_break_seconds,
            expected_exception=(httpx.HTTPError,),
            is_failure=is_transient_error,
            clock=clock,
        ))

    @classmethod
    def from_config(cls, settings: Config, **kwargs) -> "ResiliencePolicy":
        return cls(
            retry_count=settings.RESILIENT_HTTP_RETRY_COUNT,
            exceptions_before_circuit_break=settings.RESILIENT_HTTP_EXCEPTIONS_BEFORE_CIRCUIT_BREAK,
            circuit_break_seconds=settings.RESILIENT_HTTP_CIRCUIT_BREAK_SECONDS,
            **kwargs
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.retry_count + 1),
            wait=backoff_wait,
            retry=retry_if_exception(is_transient_error),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Runs the coroutine function through both policies

        Raises:
            CircuitBreakerException: circuit open, the call was not made
            httpx.HTTPError: the last transient failure once retries are exhausted,
                or any non-transient error right away
        """
        async for attempt in self._retrying():
            with attempt:
                return await self.circuit_breaker.call(func, *args, **kwargs)

    def status(self) -> dict:
        return {
            "retry_count": self.retry_count,
            "circuit_breaker": self.circuit_breaker.status(),
        }
