from typing import Annotated

from fastapi import Depends, Request

from src.api.services.customer_service import CustomerService
from src.services.customers_api_client import CustomersApiClient


def get_customer_service(request: Request) -> CustomerService:
    return request.app.state.customer_service


def get_customers_api_client(request: Request) -> CustomersApiClient:
    return request.app.state.customers_api_client


GetCustomerServiceDep = Annotated[CustomerService, Depends(get_customer_service)]
GetCustomersApiClientDep = Annotated[CustomersApiClient, Depends(get_customers_api_client)]
