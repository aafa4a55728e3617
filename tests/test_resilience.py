"""
Resilience tests
================
Circuit breaker states, retry backoff and how the two combine.
Time is faked: sleeps are recorded and the clock only moves when told.
"""

import httpx
import pytest

from src.core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerException,
    CircuitBreakerState,
    get_circuit_breaker,
)
from src.core.config import Config
from src.core.resilience import ResiliencePolicy, is_transient_error, raise_for_server_error

REQUEST = httpx.Request("GET", "http://customers-api.test/api/customers")


class Downstream:
    """Answers with the queued status codes, then keeps repeating the last one"""

    def __init__(self, *status_codes):
        self.status_codes = list(status_codes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        status_code = self.status_codes.pop(0) if len(self.status_codes) > 1 else self.status_codes[0]
        return raise_for_server_error(httpx.Response(status_code, request=REQUEST))


class ConnectionRefused:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        raise httpx.ConnectError("connection refused", request=REQUEST)


# ═══════════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════════

class TestTransientErrors:

    @pytest.mark.parametrize("status_code", [500, 502, 503, 504])
    def test_server_errors_are_transient(self, status_code):
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            raise_for_server_error(httpx.Response(status_code, request=REQUEST))

        assert is_transient_error(exc_info.value)

    @pytest.mark.parametrize("status_code", [200, 204, 400, 404])
    def test_other_answers_pass_through(self, status_code):
        response = httpx.Response(status_code, request=REQUEST)

        assert raise_for_server_error(response) is response

    def test_network_errors_are_transient(self):
        assert is_transient_error(httpx.ConnectError("refused", request=REQUEST))
        assert is_transient_error(httpx.ReadTimeout("slow", request=REQUEST))

    def test_everything_else_is_not(self):
        not_found = httpx.Response(404, request=REQUEST)

        assert not is_transient_error(httpx.HTTPStatusError("404", request=REQUEST, response=not_found))
        assert not is_transient_error(ValueError("bad json"))
        assert not is_transient_error(CircuitBreakerException("open"))


# ═══════════════════════════════════════════════════════════
# CIRCUIT BREAKER
# ═══════════════════════════════════════════════════════════

class TestCircuitBreaker:

    @pytest.fixture
    def breaker(self, fake_time):
        return CircuitBreaker(
            "test_breaker",
            failure_threshold=2,
            recovery_timeout=60,
            expected_exception=(httpx.HTTPError,),
            is_failure=is_transient_error,
            clock=fake_time.clock,
        )

    @pytest.mark.asyncio
    async def test_opens_after_consecutive_failures(self, breaker):
        downstream = Downstream(500)

        for _ in range(2):
            with pytest.raises(httpx.HTTPStatusError):
                await breaker.call(downstream)

        assert breaker.state == CircuitBreakerState.OPEN
        with pytest.raises(CircuitBreakerException):
            await breaker.call(downstream)
        assert downstream.calls == 2

    @pytest.mark.asyncio
    async def test_success_resets_the_count(self, breaker):
        downstream = Downstream(500, 200, 500, 200)

        for _ in range(4):
            try:
                await breaker.call(downstream)
            except httpx.HTTPStatusError:
                pass

        assert breaker.state == CircuitBreakerState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_non_transient_errors_are_not_counted(self, breaker):
        async def bad_payload():
            raise ValueError("bad json")

        for _ in range(3):
            with pytest.raises(ValueError):
                await breaker.call(bad_payload)

        assert breaker.state == CircuitBreakerState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_trial_success_closes(self, breaker, fake_time):
        downstream = Downstream(500, 500, 200)
        for _ in range(2):
            with pytest.raises(httpx.HTTPStatusError):
                await breaker.call(downstream)

        fake_time.now += 59
        with pytest.raises(CircuitBreakerException):
            await breaker.call(downstream)

        fake_time.now += 1
        response = await breaker.call(downstream)

        assert response.status_code == 200
        assert breaker.state == CircuitBreakerState.CLOSED
        assert downstream.calls == 3

    @pytest.mark.asyncio
    async def test_half_open_trial_failure_reopens(self, breaker, fake_time):
        downstream = Downstream(500)
        for _ in range(2):
            with pytest.raises(httpx.HTTPStatusError):
                await breaker.call(downstream)

        fake_time.now += 60
        with pytest.raises(httpx.HTTPStatusError):
            await breaker.call(downstream)

        assert breaker.state == CircuitBreakerState.OPEN
        assert breaker.opened_at == 60
        with pytest.raises(CircuitBreakerException):
            await breaker.call(downstream)
        assert downstream.calls == 3


# ═══════════════════════════════════════════════════════════
# POLICY
# ═══════════════════════════════════════════════════════════

class TestResiliencePolicy:

    @pytest.mark.asyncio
    async def test_server_faults_open_the_circuit_after_two_calls(self, make_policy, fake_time):
        policy = make_policy(retry_count=3, exceptions_before_circuit_break=2)
        downstream = Downstream(500, 500, 500)

        with pytest.raises(CircuitBreakerException):
            await policy.execute(downstream)

        assert downstream.calls == 2
        assert fake_time.sleeps == [1.0, 2.0]
        assert policy.circuit_breaker.state == CircuitBreakerState.OPEN

        # Still inside the cool-down window: rejected without calling downstream
        with pytest.raises(CircuitBreakerException):
            await policy.execute(downstream)
        assert downstream.calls == 2

    @pytest.mark.asyncio
    async def test_backoff_doubles_and_last_error_is_raised(self, make_policy, fake_time):
        policy = make_policy(retry_count=3, exceptions_before_circuit_break=10)
        downstream = ConnectionRefused()

        with pytest.raises(httpx.ConnectError):
            await policy.execute(downstream)

        assert downstream.calls == 4
        assert fake_time.sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_recovers_within_retries(self, make_policy, fake_time):
        policy = make_policy(retry_count=3, exceptions_before_circuit_break=5)
        downstream = Downstream(503, 200)

        response = await policy.execute(downstream)

        assert response.status_code == 200
        assert downstream.calls == 2
        assert policy.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, make_policy, fake_time):
        policy = make_policy(retry_count=3)
        downstream = Downstream(404)

        response = await policy.execute(downstream)

        assert response.status_code == 404
        assert downstream.calls == 1
        assert fake_time.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_retries(self, make_policy):
        policy = make_policy(retry_count=0, exceptions_before_circuit_break=5)
        downstream = Downstream(500)

        with pytest.raises(httpx.HTTPStatusError):
            await policy.execute(downstream)

        assert downstream.calls == 1

    @pytest.mark.asyncio
    async def test_retries_are_logged(self, make_policy, caplog):
        policy = make_policy(retry_count=1, exceptions_before_circuit_break=5)

        with pytest.raises(httpx.HTTPStatusError):
            await policy.execute(Downstream(500))

        assert "Retry 1 after 1.0 seconds due to" in caplog.text

    def test_built_from_config(self):
        settings = Config(
            RESILIENT_HTTP_RETRY_COUNT=5,
            RESILIENT_HTTP_EXCEPTIONS_BEFORE_CIRCUIT_BREAK=4,
            RESILIENT_HTTP_CIRCUIT_BREAK_SECONDS=30,
        )

        policy = ResiliencePolicy.from_config(settings, name="configured_api")

        assert policy.retry_count == 5
        assert policy.circuit_breaker.failure_threshold == 4
        assert policy.circuit_breaker.recovery_timeout == 30
        assert get_circuit_breaker("configured_api") is policy.circuit_breaker
