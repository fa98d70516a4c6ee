"""Promotion claim request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ClaimRequest(BaseModel):
    """POST /promotions/claim request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    promotion_id: UUID
    property_id: UUID
    guest_name: str = Field(min_length=1, max_length=200)
    guest_email: EmailStr
    guest_phone: str = Field(min_length=1, max_length=50)

    @field_validator("guest_email", mode="after")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class ClaimResponse(BaseModel):
    """POST /promotions/claim response."""

    message: str
    conversation_id: str
    guest_user_id: str
    is_new_user: bool
