"""Profile model - one row per platform user, keyed by the auth account id."""

from datetime import datetime

from sqlalchemy import DateTime, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from vrms.database import Base
from vrms.utils.normalization import normalize_email


class Profile(Base):
    """Platform user profile.

    ``id`` always equals the id of the auth account it was provisioned with
    and never changes afterwards.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_type: Mapped[str] = mapped_column(Text, nullable=False, default="free")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @validates("id")
    def _validate_id(self, key, value):
        if not value:
            raise ValueError("profile id is required")
        if self.id is not None and self.id != value:
            raise ValueError("profile id is immutable")
        return str(value)

    @validates("email")
    def _validate_email(self, key, value):
        email = normalize_email(value)
        if not email:
            raise ValueError("profile email is required")
        return email
