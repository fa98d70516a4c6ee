"""Customer request/response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from vrms.models.customer import CUSTOMER_SOURCES


class FindOrCreateCustomerRequest(BaseModel):
    """POST /customers request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    property_id: UUID
    full_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    user_id: UUID | None = None
    source: str = "manual"

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if v not in CUSTOMER_SOURCES:
            raise ValueError(f"source must be one of {CUSTOMER_SOURCES}")
        return v


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    property_id: str
    company_id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    status: str
    tags: list[str] = Field(default_factory=list)
    source: str
    total_bookings: int = 0
    total_spent: Decimal = Decimal("0")
    last_contact_date: datetime | None = None
