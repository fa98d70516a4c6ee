"""Promotion model - read-only input to the claim flow."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from vrms.database import Base

DISCOUNT_TYPES = ("percentage", "fixed_amount", "free_nights")


class Promotion(Base):
    """Room promotion offered by a property."""

    __tablename__ = "room_promotions"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    discount_type: Mapped[str] = mapped_column(Text, nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_claimable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @validates("discount_type")
    def _validate_discount_type(self, key, value):
        if value not in DISCOUNT_TYPES:
            raise ValueError(f"Invalid discount_type: {value}. Allowed: {DISCOUNT_TYPES}")
        return value
