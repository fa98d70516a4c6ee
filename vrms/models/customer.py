"""CRM customer model - scoped to exactly one property."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from vrms.database import Base
from vrms.utils.normalization import normalize_email, normalize_tags

CUSTOMER_STATUSES = ("lead", "active", "past_guest", "inactive")
CUSTOMER_SOURCES = ("chat", "booking", "manual", "import", "website")


class Customer(Base):
    """Customer table - one row per (email, property).

    ``user_id`` is null while the guest has never completed account setup.
    ``company_id`` is denormalized from the property.
    """

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("email", "property_id", name="uq_customers_email_property"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=True
    )
    property_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("properties.id"), nullable=False
    )
    first_property_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("properties.id"), nullable=True
    )
    company_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("companies.id"), nullable=False
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="lead")
    tags: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False, default=list)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="chat")
    total_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    first_booking_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_booking_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_contact_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @validates("email")
    def _validate_email(self, key, value):
        email = normalize_email(value)
        if not email:
            raise ValueError("customer email is required")
        return email

    @validates("status")
    def _validate_status(self, key, value):
        if value not in CUSTOMER_STATUSES:
            raise ValueError(f"Invalid status: {value}. Allowed: {CUSTOMER_STATUSES}")
        return value

    @validates("source")
    def _validate_source(self, key, value):
        if value not in CUSTOMER_SOURCES:
            raise ValueError(f"Invalid source: {value}. Allowed: {CUSTOMER_SOURCES}")
        return value

    @validates("tags")
    def _validate_tags(self, key, value):
        return normalize_tags(value)
