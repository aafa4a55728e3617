# src/api/services/customer_service.py
import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from src.api.crud.crud_customer import CustomersStore
from src.api.schemas.customer import CustomerInput
from src.core.exceptions import CustomerStoreError
from src.core.messages import MessageCatalog

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    OK = "Ok"
    BAD_REQUEST = "BadRequest"
    NOT_FOUND = "NotFound"
    INTERNAL_ERROR = "InternalError"


_STATUS_CODES = {
    Outcome.OK: 200,
    Outcome.BAD_REQUEST: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.INTERNAL_ERROR: 500,
}


@dataclass(frozen=True)
class ServiceResult:
    outcome: Outcome
    value: Any = None
    message: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.outcome]


class CustomerService:
    """
    Application facade over the customer store.

    Every answer is one of Ok / BadRequest / NotFound / InternalError.
    Input validation runs first, then the existence check, then the
    mutation, so an invalid payload for an unknown id is a BadRequest.
    Only the non-throwing store operations are used, no store exception
    reaches the caller.
    """

    def __init__(self, store: CustomersStore, messages: Optional[Mapping[str, str]] = None):
        self.store = store
        self.messages = MessageCatalog(messages)

    # ========== QUERIES ==========

    def list_customers(self) -> ServiceResult:
        logger.info(self._log_text("list_customers", "LoggingGetCustomers"))
        try:
            customers = self.store.list()
        except CustomerStoreError:
            logger.exception(self._log_text("list_customers", "UnexpectedServerError"))
            return self._internal_error()

        return self._ok(customers)

    def get_customer(self, customer_id: str) -> ServiceResult:
        logger.info(self._log_text("get_customer", "LoggingGetCustomer", customer_id))

        failure = self._check_exists("get_customer", customer_id)
        if failure is not None:
            return failure

        result = self.store.try_find(customer_id)
        if not result.is_success:
            logger.error(self._log_text("get_customer", "CustomerNotFound", customer_id))
            return self._not_found(customer_id)

        return self._ok(result.customer)

    # ========== MUTATIONS ==========

    def create_customer(self, customer_input: Optional[CustomerInput]) -> ServiceResult:
        if not self._is_valid(customer_input):
            logger.error(self._log_text("create_customer", "CustomerInfoInvalid"))
            return self._bad_request()

        self._check_phone_number("create_customer", customer_input)
        customer_name = customer_input.full_name

        logger.info(self._log_text("create_customer", "LoggingAddingCustomer", customer_name))
        result = self.store.try_add(customer_input)

        if not result.is_success:
            logger.error(self._log_text("create_customer", "UnexpectedServerError"))
            return self._internal_error()

        logger.info(self._log_text("create_customer", "LoggingAddedCustomer", customer_name))
        return self._ok(result.customer)

    def update_customer(self, customer_id: str, customer_input: Optional[CustomerInput]) -> ServiceResult:
        if not self._is_valid(customer_input):
            logger.error(self._log_text("update_customer", "CustomerInfoInvalid"))
            return self._bad_request()

        self._check_phone_number("update_customer", customer_input)
        logger.info(self._log_text("update_customer", "LoggingUpdatingCustomer", customer_id))

        failure = self._check_exists("update_customer", customer_id)
        if failure is not None:
            return failure

        result = self.store.try_update(customer_id, customer_input)
        if not result.is_success:
            logger.error(self._log_text("update_customer", "UnexpectedServerError"))
            return self._internal_error()

        logger.info(self._log_text("update_customer", "LoggingUpdatedCustomer", customer_id))
        return self._ok(result.customer)

    def delete_customer(self, customer_id: str) -> ServiceResult:
        logger.info(self._log_text("delete_customer", "LoggingDeletingCustomer", customer_id))

        failure = self._check_exists("delete_customer", customer_id)
        if failure is not None:
            return failure

        result = self.store.try_delete(customer_id)
        if not result.is_success:
            logger.error(self._log_text("delete_customer", "UnexpectedServerError"))
            return self._internal_error()

        logger.info(self._log_text("delete_customer", "LoggingDeletedCustomer", customer_id))
        return self._ok(result.customer)

    # ========== HELPERS ==========

    @staticmethod
    def _is_valid(customer_input: Optional[CustomerInput]) -> bool:
        return customer_input is not None and customer_input.is_valid()

    def _check_phone_number(self, operation: str, customer_input: CustomerInput) -> None:
        if not customer_input.has_valid_phone_number():
            logger.warning(
                self._log_text(operation, "LoggingPhoneNumberFormat", customer_input.phone_number)
            )

    def _check_exists(self, operation: str, customer_id: str) -> Optional[ServiceResult]:
        """NotFound or InternalError when the id cannot be used, None when it is stored"""
        try:
            found = self.store.exists(customer_id)
        except CustomerStoreError:
            logger.exception(self._log_text(operation, "UnexpectedServerError"))
            return self._internal_error()

        if not found:
            logger.error(self._log_text(operation, "CustomerNotFound", customer_id))
            return self._not_found(customer_id)

        return None

    def _log_text(self, operation: str, key: str, *args) -> str:
        return f"{operation}: {self.messages.get(key, *args)}"

    @staticmethod
    def _ok(value) -> ServiceResult:
        return ServiceResult(Outcome.OK, value=value)

    def _bad_request(self) -> ServiceResult:
        return ServiceResult(Outcome.BAD_REQUEST, message=self.messages.get("CustomerInfoInvalid"))

    def _not_found(self, customer_id: str) -> ServiceResult:
        return ServiceResult(Outcome.NOT_FOUND, message=self.messages.get("CustomerNotFound", customer_id))

    def _internal_error(self) -> ServiceResult:
        return ServiceResult(Outcome.INTERNAL_ERROR, message=self.messages.get("UnexpectedServerError"))
