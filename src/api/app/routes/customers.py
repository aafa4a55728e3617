from typing import Optional

from fastapi import APIRouter, Body
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from src.api.schemas.customer import CustomerInput, CustomerRecord
from src.api.services.customer_service import ServiceResult
from src.core.dependencies import GetCustomerServiceDep

router = APIRouter(tags=["Customers"], prefix="/api/customers")


def to_response(result: ServiceResult) -> JSONResponse:
    """Maps a service answer to its HTTP response"""
    if result.is_ok:
        if isinstance(result.value, list):
            content = [customer.model_dump(by_alias=True) for customer in result.value]
        else:
            content = result.value.model_dump(by_alias=True)
    else:
        content = {"error": result.outcome.value, "message": result.message}

    return JSONResponse(status_code=result.status_code, content=jsonable_encoder(content))


@router.get("", response_model=list[CustomerRecord])
def list_customers(service: GetCustomerServiceDep):
    return to_response(service.list_customers())


@router.get("/{customer_id}", response_model=CustomerRecord)
def get_customer(customer_id: str, service: GetCustomerServiceDep):
    return to_response(service.get_customer(customer_id))


@router.post("", response_model=CustomerRecord)
def create_customer(
    service: GetCustomerServiceDep,
    customer_in: Optional[CustomerInput] = Body(None),
):
    return to_response(service.create_customer(customer_in))


@router.put("/{customer_id}", response_model=CustomerRecord)
def update_customer(
    customer_id: str,
    service: GetCustomerServiceDep,
    customer_in: Optional[CustomerInput] = Body(None),
):
    return to_response(service.update_customer(customer_id, customer_in))


@router.delete("/{customer_id}", response_model=CustomerRecord)
def delete_customer(customer_id: str, service: GetCustomerServiceDep):
    return to_response(service.delete_customer(customer_id))
