# src/services/customers_api_client.py
"""
HTTP client for the Customers API, used by the portal.

Every request goes through the resilience policy and forwards the
correlation ID of the request being handled.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from src.api.schemas.customer import CustomerInput, CustomerRecord
from src.core.circuit_breaker import CircuitBreakerException
from src.core.middleware.correlation import CORRELATION_HEADER_NAME, get_correlation_id
from src.core.resilience import ResiliencePolicy, raise_for_server_error

logger = logging.getLogger(__name__)

CUSTOMERS_ENDPOINT = "/api/customers"
SERVICE_UNAVAILABLE = 503


class CustomersApiClient:
    def __init__(
        self,
        base_url: str,
        policy: ResiliencePolicy,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.policy = policy
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={
                "accept": "application/json",
                "content-type": "application/json",
                "user-agent": "CustomersPortal/1.0",
            },
        )

    async def __aenter__(self) -> "CustomersApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ========== TRANSPORT ==========

    def _headers(self) -> Dict[str, str]:
        cid = get_correlation_id()
        return {CORRELATION_HEADER_NAME: cid} if cid else {}

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        logger.info(f"🔗 [{method}] {url} → {response.status_code}")
        return raise_for_server_error(response)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        return await self.policy.execute(self._send, method, url, **kwargs)

    async def _status_of(self, method: str, url: str, **kwargs) -> int:
        """Status code of the answer, 503 when the API could not be reached"""
        try:
            response = await self._request(method, url, **kwargs)
        except CircuitBreakerException as e:
            logger.error(f"❌ {method} {url} rejected: {e}")
            return SERVICE_UNAVAILABLE
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {url} failed: {e!r}")
            return SERVICE_UNAVAILABLE
        return response.status_code

    async def _get_json(self, url: str) -> Optional[Any]:
        try:
            response = await self._request("GET", url)
        except (CircuitBreakerException, httpx.HTTPError) as e:
            logger.error(f"❌ GET {url} failed: {e!r}")
            return None

        if not response.is_success:
            return None
        return response.json()

    # ========== OPERATIONS ==========

    async def get_customers_list(self) -> List[CustomerRecord]:
        """Customers sorted by last name, empty when the API does not answer"""
        data = await self._get_json(CUSTOMERS_ENDPOINT)
        if not data:
            return []

        customers = [CustomerRecord.model_validate(item) for item in data]
        return sorted(customers, key=lambda c: c.last_name or "")

    async def get_customer(self, customer_id: str) -> Optional[CustomerRecord]:
        data = await self._get_json(f"{CUSTOMERS_ENDPOINT}/{customer_id}")
        if data is None:
            return None
        return CustomerRecord.model_validate(data)

    async def add_customer(self, customer_input: CustomerInput) -> int:
        return await self._status_of(
            "POST", CUSTOMERS_ENDPOINT, json=customer_input.model_dump(by_alias=True)
        )

    async def update_customer(self, customer_id: str, customer_input: CustomerInput) -> int:
        return await self._status_of(
            "PUT", f"{CUSTOMERS_ENDPOINT}/{customer_id}", json=customer_input.model_dump(by_alias=True)
        )

    async def delete_customer(self, customer_id: str) -> int:
        return await self._status_of("DELETE", f"{CUSTOMERS_ENDPOINT}/{customer_id}")
