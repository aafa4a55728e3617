"""
Circuit Breaker Pattern Implementation
======================================
Protects calls to remote services that keep failing.

States:
- CLOSED: normal, calls go through
- OPEN: consecutive failures detected, calls are rejected without running
- HALF_OPEN: cool-down is over, a single trial call decides the next state

Usage:
    breaker = CircuitBreaker("customers_api", failure_threshold=2, recovery_timeout=60)
    response = await breaker.call(client.get, "/api/customers")
"""

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CircuitBreakerState(str, Enum):
    """Circuit breaker states"""
    CLOSED = "CLOSED"           # Normal
    OPEN = "OPEN"               # Failing, calls rejected
    HALF_OPEN = "HALF_OPEN"     # Trying a recovery call


class CircuitBreakerException(Exception):
    """Raised instead of running the call while the circuit is OPEN"""
    pass


class CircuitBreaker:
    """
    Circuit breaker for remote calls.

    Attributes:
        name: Breaker name (for logs and status)
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds the circuit stays OPEN
        expected_exception: Exceptions that count as failures
        is_failure: Optional predicate refining expected_exception
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        expected_exception: Tuple[type, ...] = (Exception,),
        is_failure: Optional[Callable[[BaseException], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self._is_failure = is_failure
        self._clock = clock

        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self.state = CircuitBreakerState.CLOSED
        self._trial_in_flight = False

        logger.info(
            f"✅ Circuit Breaker '{name}' initialized "
            f"(threshold: {failure_threshold} failures, timeout: {recovery_timeout}s)"
        )

    def handles(self, error: BaseException) -> bool:
        """True when the error counts against the circuit"""
        if not isinstance(error, self.expected_exception):
            return False
        return self._is_failure is None or self._is_failure(error)

    def is_circuit_open(self) -> bool:
        """Checks whether calls must be rejected right now"""
        if self.state == CircuitBreakerState.CLOSED:
            return False

        if self.state == CircuitBreakerState.OPEN:
            if self._clock() - self.opened_at >= self.recovery_timeout:
                self.state = CircuitBreakerState.HALF_OPEN
                self._trial_in_flight = False
                logger.info(f"🟡 Circuit Breaker '{self.name}': circuit half-open")
            else:
                return True

        # HALF_OPEN - only one trial call at a time
        return self._trial_in_flight

    def record_failure(self, error: Optional[BaseException] = None):
        """Records a failure, opens the circuit when needed"""
        self._trial_in_flight = False

        if self.state == CircuitBreakerState.HALF_OPEN:
            self._open(error)
            return

        self.failure_count += 1
        logger.error(
            f"❌ Circuit Breaker '{self.name}' recorded a failure "
            f"({self.failure_count}/{self.failure_threshold})"
        )

        if self.failure_count >= self.failure_threshold:
            self._open(error)

    def record_success(self):
        """Records a success, closes a half-open circuit"""
        self._trial_in_flight = False

        if self.state == CircuitBreakerState.HALF_OPEN:
            logger.info(f"✅ Circuit Breaker '{self.name}': circuit breaker closed")
            self.state = CircuitBreakerState.CLOSED
            self.opened_at = None

        # Only consecutive failures count
        self.failure_count = 0

    def reset(self):
        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.opened_at = None
        self._trial_in_flight = False

    def _open(self, error: Optional[BaseException]):
        self.state = CircuitBreakerState.OPEN
        self.opened_at = self._clock()
        logger.warning(
            f"🔴 Circuit Breaker '{self.name}' opened for {self.recovery_timeout} seconds "
            f"due to: {error!r}"
        )

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Runs the coroutine function under the circuit breaker

        Raises CircuitBreakerException while the circuit is OPEN
        """
        if self.is_circuit_open():
            raise CircuitBreakerException(
                f"Circuit Breaker '{self.name}' is OPEN. "
                f"Service unavailable, try again in {self.recovery_timeout}s"
            )

        if self.state == CircuitBreakerState.HALF_OPEN:
            self._trial_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except BaseException as e:
            if self.handles(e):
                self.record_failure(e)
            else:
                self._trial_in_flight = False
            raise

        self.record_success()
        return result

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "opened_at": self.opened_at,
            "recovery_timeout": self.recovery_timeout,
        }


# Breakers registered by name, for status reporting
circuit_breakers: Dict[str, CircuitBreaker] = {}


def register_circuit_breaker(breaker: CircuitBreaker) -> CircuitBreaker:
    circuit_breakers[breaker.name] = breaker
    return breaker


def get_circuit_breaker(service_name: str) -> Optional[CircuitBreaker]:
    """Returns a registered circuit breaker"""
    return circuit_breakers.get(service_name)


def get_all_circuit_breakers_status() -> dict:
    """Returns the status of every registered circuit breaker"""
    return {name: breaker.status() for name, breaker in circuit_breakers.items()}
