"""
Customers portal
================
Front-end endpoints that consume the Customers API over HTTP, through the
resilient client. Correlation IDs flow from the portal request to the API.
"""
from fastapi import APIRouter

from src.api.schemas.customer import CustomerInput
from src.core.config import config
from src.core.dependencies import GetCustomersApiClientDep

router = APIRouter(tags=["Portal"], prefix="/home")

SAMPLE_CUSTOMER = CustomerInput(
    first_name="Jon",
    last_name="Smith",
    phone_number="555-555-5555",
)


async def _customers_page(client, status_code: int = None) -> dict:
    customers = await client.get_customers_list()
    page = {"customers": [customer.model_dump(by_alias=True) for customer in customers]}
    if status_code is not None:
        page["apiStatus"] = status_code
    return page


@router.get("")
async def index():
    return {"title": config.HOME_TITLE}


@router.get("/customers-list")
async def customers_list(client: GetCustomersApiClientDep):
    return await _customers_page(client)


@router.post("/add-customer")
async def add_customer(client: GetCustomersApiClientDep):
    status_code = await client.add_customer(SAMPLE_CUSTOMER)
    return await _customers_page(client, status_code)


@router.post("/delete-customer/{customer_id}")
async def delete_customer(customer_id: str, client: GetCustomersApiClientDep):
    status_code = await client.delete_customer(customer_id)
    return await _customers_page(client, status_code)
