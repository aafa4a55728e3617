"""
Customer store errors
=====================
Raised by the throwing store primitives. The `try_*` wrappers turn every
one of them into a failed CustomerActionResult.
"""


class CustomerStoreError(Exception):
    """Base class for every customer store failure"""
    pass


class CustomerNotFoundError(CustomerStoreError):
    """No customer is stored under the requested id"""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer '{customer_id}' not found")


class InvalidCustomerInputError(CustomerStoreError):
    """The payload is missing or fails the required-field check"""
    pass


class CustomerStorageError(CustomerStoreError):
    """The mutation did not take effect in the underlying storage"""
    pass
