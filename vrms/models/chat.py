"""Chat models - conversations, participants, messages, support tickets."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from vrms.database import Base

CONVERSATION_TYPES = ("guest_inquiry", "team", "support")
PARTICIPANT_ROLES = ("owner", "admin", "member", "guest")
MESSAGE_TYPES = ("text", "system", "media")


class Conversation(Base):
    """Chat conversation - belongs to at most one property."""

    __tablename__ = "chat_conversations"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    property_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("properties.id"), nullable=True
    )
    created_by: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @validates("type")
    def _validate_type(self, key, value):
        if value not in CONVERSATION_TYPES:
            raise ValueError(f"Invalid conversation type: {value}")
        return value


class Participant(Base):
    """Links a profile to a conversation."""

    __tablename__ = "chat_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_chat_participants_member"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("chat_conversations.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(Text, nullable=False, default="member")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @validates("role")
    def _validate_role(self, key, value):
        if value not in PARTICIPANT_ROLES:
            raise ValueError(f"Invalid participant role: {value}")
        return value


class Message(Base):
    """Chat message. Soft-deleted messages keep their row."""

    __tablename__ = "chat_messages"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("chat_conversations.id"), nullable=False
    )
    sender_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(Text, nullable=False, default="text")
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @validates("message_type")
    def _validate_message_type(self, key, value):
        if value not in MESSAGE_TYPES:
            raise ValueError(f"Invalid message type: {value}")
        return value

    @validates("content")
    def _validate_content(self, key, value):
        if not value or not value.strip():
            raise ValueError("message content is required")
        return value


class SupportTicket(Base):
    """Support ticket attached to a ``support`` conversation."""

    __tablename__ = "support_tickets"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("chat_conversations.id"), nullable=False
    )
    ticket_number: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    priority: Mapped[str] = mapped_column(Text, nullable=False, default="normal")
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    sla_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
