from typing import Optional

from pydantic import Field

from src.api.schemas.base_schema import AppBaseModel
from src.core.utils.validators import is_empty, is_valid_name, validate_phone


class CustomerBase(AppBaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = Field(
        None,
        description="Phone number",
        examples=["555-555-5555"],
    )
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CustomerRecord(CustomerBase):
    """Stored customer. The id is assigned by the store on creation."""

    id: str = ""

    def is_valid(self) -> bool:
        return (
            not is_empty(self.id)
            and not is_empty(self.first_name)
            and not is_empty(self.last_name)
        )


class CustomerInput(CustomerBase):
    """Create/update payload. Never stored itself, its values are copied into a record."""

    def is_valid(self) -> bool:
        # Phone format is only a hint, first and last name are the requirement
        return is_valid_name(self.first_name) and is_valid_name(self.last_name)

    def has_valid_phone_number(self) -> bool:
        return is_empty(self.phone_number) or validate_phone(self.phone_number)

    def apply_to(self, target) -> None:
        """Copies every input field onto a record or ORM row, leaving its id alone"""
        target.first_name = self.first_name
        target.last_name = self.last_name
        target.phone_number = self.phone_number
        target.address = self.address
        target.city = self.city
        target.state = self.state
        target.zip_code = self.zip_code

    def to_record(self, customer_id: str) -> CustomerRecord:
        record = CustomerRecord(id=customer_id)
        self.apply_to(record)
        return record
