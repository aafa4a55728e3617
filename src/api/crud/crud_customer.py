# src/api/crud/crud_customer.py
"""
Customer stores
===============
Keyed collection of CustomerRecords behind one contract.

Every operation exists in two forms:
- the primitive (find, add, update, delete) raises a CustomerStoreError
- the try_* form never raises and answers with a CustomerActionResult
"""
from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.api.schemas.customer import CustomerInput, CustomerRecord
from src.core import database, models
from src.core.config import Config, config
from src.core.exceptions import (
    CustomerNotFoundError,
    CustomerStorageError,
    CustomerStoreError,
    InvalidCustomerInputError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerActionResult:
    is_success: bool
    customer: Optional[CustomerRecord] = None

    @classmethod
    def succeeded(cls, customer: CustomerRecord) -> "CustomerActionResult":
        return cls(True, customer)

    @classmethod
    def failed(cls) -> "CustomerActionResult":
        return _FAILED_RESULT


_FAILED_RESULT = CustomerActionResult(False, None)


class CustomersStore(ABC):
    """Contract shared by every customer store"""

    # ========== PRIMITIVES ==========

    @abstractmethod
    def list(self) -> List[CustomerRecord]:
        """All stored customers, in no particular order"""

    @abstractmethod
    def exists(self, customer_id: str) -> bool:
        ...

    @abstractmethod
    def find(self, customer_id: str) -> CustomerRecord:
        """Raises CustomerNotFoundError when the id is not stored"""

    @abstractmethod
    def add(self, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        """Stores a new customer under a freshly assigned id"""

    @abstractmethod
    def update(self, customer_id: str, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        """Overwrites every field of an existing customer, the id stays the same"""

    @abstractmethod
    def delete(self, customer_id: str) -> CustomerRecord:
        """Removes the customer and returns what was removed"""

    # ========== NON-THROWING FORMS ==========

    def try_find(self, customer_id: str) -> CustomerActionResult:
        return self._attempt("find", self.find, customer_id)

    def try_add(self, customer_input: Optional[CustomerInput]) -> CustomerActionResult:
        return self._attempt("add", self.add, customer_input)

    def try_update(self, customer_id: str, customer_input: Optional[CustomerInput]) -> CustomerActionResult:
        return self._attempt("update", self.update, customer_id, customer_input)

    def try_delete(self, customer_id: str) -> CustomerActionResult:
        return self._attempt("delete", self.delete, customer_id)

    def _attempt(self, operation: str, func, *args) -> CustomerActionResult:
        try:
            customer = func(*args)
        except CustomerStoreError as e:
            logger.debug(f"Store {operation} failed: {e!r}")
            return CustomerActionResult.failed()

        if customer is None:
            return CustomerActionResult.failed()

        return CustomerActionResult.succeeded(customer)

    # ========== HELPERS ==========

    @staticmethod
    def _ensure_valid(customer_input: Optional[CustomerInput]) -> None:
        if customer_input is None:
            raise InvalidCustomerInputError("Customer info is required")
        if not customer_input.is_valid():
            raise InvalidCustomerInputError("First name and last name are required, up to 100 characters each")

    @staticmethod
    def _new_customer_id() -> str:
        return str(uuid.uuid4())


# ═══════════════════════════════════════════════════════════
# IN-MEMORY STORE
# ═══════════════════════════════════════════════════════════

class InMemoryCustomersStore(CustomersStore):
    """
    Process-local store.

    Records are replaced as a whole under the lock and callers only ever
    get copies, so concurrent updates of the same id never interleave.
    """

    def __init__(self):
        self._customers: dict[str, CustomerRecord] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._customers)

    def list(self) -> List[CustomerRecord]:
        with self._lock:
            return [customer.model_copy() for customer in self._customers.values()]

    def exists(self, customer_id: str) -> bool:
        with self._lock:
            return customer_id in self._customers

    def find(self, customer_id: str) -> CustomerRecord:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            return customer.model_copy()

    def add(self, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        self._ensure_valid(customer_input)

        with self._lock:
            customer_id = self._new_customer_id()
            while customer_id in self._customers:
                customer_id = self._new_customer_id()

            customer = customer_input.to_record(customer_id)
            self._customers[customer_id] = customer
            return customer.model_copy()

    def update(self, customer_id: str, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        with self._lock:
            if customer_id not in self._customers:
                raise CustomerNotFoundError(customer_id)
            self._ensure_valid(customer_input)

            customer = customer_input.to_record(customer_id)
            self._customers[customer_id] = customer
            return customer.model_copy()

    def delete(self, customer_id: str) -> CustomerRecord:
        with self._lock:
            customer = self._customers.pop(customer_id, None)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            return customer


# ═══════════════════════════════════════════════════════════
# SQLALCHEMY STORE
# ═══════════════════════════════════════════════════════════

class SqlAlchemyCustomersStore(CustomersStore):
    """Durable store, one session and one transaction per operation"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with database.session_scope(self._session_factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"❌ Customer store database error: {e}", exc_info=True)
            raise CustomerStorageError(str(e)) from e

    @staticmethod
    def _to_record(row: models.Customer) -> CustomerRecord:
        return CustomerRecord(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            phone_number=row.phone_number,
            address=row.address,
            city=row.city,
            state=row.state,
            zip_code=row.zip_code or 0,
        )

    def list(self) -> List[CustomerRecord]:
        with self._session() as db:
            rows = db.scalars(select(models.Customer)).all()
            return [self._to_record(row) for row in rows]

    def exists(self, customer_id: str) -> bool:
        with self._session() as db:
            return db.get(models.Customer, customer_id) is not None

    def find(self, customer_id: str) -> CustomerRecord:
        with self._session() as db:
            row = db.get(models.Customer, customer_id)
            if row is None:
                raise CustomerNotFoundError(customer_id)
            return self._to_record(row)

    def add(self, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        self._ensure_valid(customer_input)

        with self._session() as db:
            row = models.Customer(id=self._new_customer_id())
            customer_input.apply_to(row)
            db.add(row)
            db.commit()
            return self._to_record(row)

    def update(self, customer_id: str, customer_input: Optional[CustomerInput]) -> CustomerRecord:
        with self._session() as db:
            row = db.get(models.Customer, customer_id, with_for_update=True)
            if row is None:
                raise CustomerNotFoundError(customer_id)
            self._ensure_valid(customer_input)

            customer_input.apply_to(row)
            db.commit()
            return self._to_record(row)

    def delete(self, customer_id: str) -> CustomerRecord:
        with self._session() as db:
            row = db.get(models.Customer, customer_id, with_for_update=True)
            if row is None:
                raise CustomerNotFoundError(customer_id)

            customer = self._to_record(row)
            db.delete(row)
            db.commit()
            return customer


def build_customers_store(settings: Config = config) -> CustomersStore:
    """Builds the store selected by CUSTOMERS_STORE"""
    if settings.uses_database_store:
        database.create_tables(database.engine)
        logger.info("🗄️ Customer store: SQLAlchemy")
        return SqlAlchemyCustomersStore(database.SessionLocal)

    logger.info("🧠 Customer store: in memory")
    return InMemoryCustomersStore()
