"""
Shared test fixtures
====================
The environment is pinned before any application module is imported,
since the settings are read once at import time.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["CUSTOMERS_STORE"] = "memory"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CUSTOMERS_API_URL"] = "http://customers-api.test"

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.crud.crud_customer import InMemoryCustomersStore, SqlAlchemyCustomersStore
from src.api.schemas.customer import CustomerInput
from src.api.services.customer_service import CustomerService
from src.core.database import build_engine, build_session_factory, create_tables
from src.core.logging_config import install_correlation_log_factory
from src.core.resilience import ResiliencePolicy
from src.main import create_app
from src.services.customers_api_client import CustomersApiClient

install_correlation_log_factory()


# ═══════════════════════════════════════════════════════════
# STORES
# ═══════════════════════════════════════════════════════════

@pytest.fixture
def memory_store():
    return InMemoryCustomersStore()


@pytest.fixture
def database_store():
    """SQLAlchemy store on a private in-memory SQLite database"""
    engine = build_engine("sqlite:///:memory:")
    create_tables(engine)
    yield SqlAlchemyCustomersStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def store(request):
    """Runs the test once against each store backend"""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(store):
    return CustomerService(store)


@pytest.fixture
def jon_smith():
    return CustomerInput(first_name="Jon", last_name="Smith", phone_number="555-555-5555")


# ═══════════════════════════════════════════════════════════
# RESILIENCE / HTTP
# ═══════════════════════════════════════════════════════════

class FakeTime:
    """Controllable clock plus a sleep that only records the delays"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def make_policy(fake_time):
    def _make(**kwargs):
        kwargs.setdefault("name", "customers_api_test")
        return ResiliencePolicy(sleep=fake_time.sleep, clock=fake_time.clock, **kwargs)

    return _make


@pytest.fixture
def make_api_client(make_policy):
    """Builds a CustomersApiClient whose requests are answered by `handler`"""

    def _make(handler, **policy_kwargs):
        return CustomersApiClient(
            "http://customers-api.test",
            make_policy(**policy_kwargs),
            transport=httpx.MockTransport(handler),
        )

    return _make


# ═══════════════════════════════════════════════════════════
# APPLICATION
# ═══════════════════════════════════════════════════════════

@pytest.fixture
def app(memory_store):
    return create_app(store=memory_store)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running"""
    with TestClient(app) as test_client:
        yield test_client
