"""Conversation response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileSummary(BaseModel):
    """Display fields of a participant or sender."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None


class ParticipantDetails(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    user_id: str
    role: str
    joined_at: datetime | None = None
    last_read_at: datetime | None = None
    user: ProfileSummary | None = None


class PropertySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    featured_image_url: str | None = None


class MessageDetails(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str
    content: str
    message_type: str
    created_at: datetime | None = None
    sender: ProfileSummary | None = None


class SupportTicketSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_number: str
    status: str
    priority: str
    category: str | None = None
    sla_due_at: datetime | None = None
    sla_breached: bool = False


class ConversationDetails(BaseModel):
    """Conversation enriched for the CRM customer view."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str | None = None
    property_id: str | None = None
    created_by: str
    is_archived: bool = False
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    property: PropertySummary | None = None
    participants: list[ParticipantDetails] = Field(default_factory=list)
    last_message: MessageDetails | None = None
    unread_count: int = 0
    support_ticket: SupportTicketSummary | None = None
