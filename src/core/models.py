from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.utils.validators import NAME_MAX_LENGTH


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    # ✅ Uses `default` instead of `server_default`, explicit UTC time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    # UUID text, assigned by the store before insert
    id: Mapped[str] = mapped_column("customer_id", String(36), primary_key=True)

    first_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH))
    last_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), index=True)
    # Free text, stored as typed
    phone_number: Mapped[str | None] = mapped_column(nullable=True)

    # --- Address ---
    address: Mapped[str | None] = mapped_column(nullable=True)
    city: Mapped[str | None] = mapped_column(nullable=True)
    state: Mapped[str | None] = mapped_column(nullable=True)
    zip_code: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<Customer {self.id} {self.first_name} {self.last_name}>"
