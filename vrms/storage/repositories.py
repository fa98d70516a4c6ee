"""IdentityStore - repository over profiles, customers, conversations and their lookups."""

import logging
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vrms.models import (
    Company,
    Conversation,
    Customer,
    Message,
    Notification,
    Participant,
    Profile,
    Promotion,
    Property,
    SupportTicket,
)
from vrms.utils.normalization import normalize_email

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

T = TypeVar("T")


@dataclass(frozen=True)
class DuplicateKey:
    """Insert rejected by a unique constraint - the row already exists."""

    constraint: str | None = None


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the integrity error is a unique/primary key collision."""
    code = _sqlstate(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    message = str(exc.orig) if exc.orig else str(exc)
    return "duplicate key value violates unique constraint" in message


def constraint_name(exc: IntegrityError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
        name = getattr(getattr(candidate, "diag", None), "constraint_name", None)
        if name:
            return name
    return None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class IdentityStore:
    """Point reads and inserts for the identity, CRM and chat tables.

    Inserts that can collide with a unique constraint return ``DuplicateKey``
    instead of raising, so callers reconcile by re-fetching.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # -- transaction control -------------------------------------------------

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    def savepoint(self):
        """Async context manager scoping work to a SAVEPOINT."""
        return self.db.begin_nested()

    async def _insert(self, record: T) -> T | DuplicateKey:
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            name = constraint_name(exc)
            logger.info("Insert into %s hit unique constraint %s", record.__tablename__, name)
            return DuplicateKey(name)
        return record

    # -- promotions, properties, companies -----------------------------------

    async def get_promotion(self, promotion_id: str) -> Promotion | None:
        result = await self.db.execute(select(Promotion).where(Promotion.id == promotion_id))
        return result.scalar_one_or_none()

    async def get_property(self, property_id: str) -> Property | None:
        result = await self.db.execute(select(Property).where(Property.id == property_id))
        return result.scalar_one_or_none()

    async def get_company(self, company_id: str) -> Company | None:
        result = await self.db.execute(select(Company).where(Company.id == company_id))
        return result.scalar_one_or_none()

    # -- profiles -------------------------------------------------------------

    async def get_profile(self, profile_id: str) -> Profile | None:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def get_profile_by_email(self, email: str) -> Profile | None:
        """Exact match on the normalized email."""
        result = await self.db.execute(
            select(Profile).where(Profile.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def find_profile_ids_by_email(self, email: str) -> list[str]:
        """Case-insensitive match, for rows written before emails were normalized."""
        result = await self.db.execute(
            select(Profile.id).where(
                Profile.email.ilike(_escape_like(email.strip()), escape="\\")
            )
        )
        return [str(profile_id) for profile_id in result.scalars().all()]

    async def insert_profile(self, profile: Profile) -> Profile | DuplicateKey:
        return await self._insert(profile)

    # -- customers ------------------------------------------------------------

    async def get_customer(self, customer_id: str) -> Customer | None:
        result = await self.db.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalar_one_or_none()

    async def get_customer_by_user_company(
        self, user_id: str, company_id: str
    ) -> Customer | None:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.user_id == user_id, Customer.company_id == company_id)
            .order_by(Customer.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_customer_by_email_property(
        self, email: str, property_id: str
    ) -> Customer | None:
        result = await self.db.execute(
            select(Customer).where(
                Customer.email == normalize_email(email),
                Customer.property_id == property_id,
            )
        )
        return result.scalar_one_or_none()

    async def insert_customer(self, customer: Customer) -> Customer | DuplicateKey:
        return await self._insert(customer)

    async def update_customer(self, customer: Customer, **values) -> Customer:
        async with self.db.begin_nested():
            for key, value in values.items():
                setattr(customer, key, value)
        return customer

    # -- conversations --------------------------------------------------------

    async def insert_conversation(
        self,
        conversation: Conversation,
        participants: list[Participant],
        message: Message | None = None,
    ) -> Conversation:
        """Insert a conversation with its participants and seed message."""
        self.db.add(conversation)
        await self.db.flush()
        self.db.add_all(participants)
        if message is not None:
            await self.db.flush()
            self.db.add(message)
        await self.db.flush()
        return conversation

    async def list_participant_conversations(
        self, user_ids: list[str], property_id: str, archived: bool
    ) -> list[Conversation]:
        """Conversations any of ``user_ids`` takes part in, for one property.

        Ordered by last activity, most recent first, never-active last.
        """
        if not user_ids:
            return []
        member_of = select(Participant.conversation_id).where(Participant.user_id.in_(user_ids))
        result = await self.db.execute(
            select(Conversation)
            .where(
                Conversation.id.in_(member_of),
                Conversation.property_id == property_id,
                Conversation.is_archived.is_(archived),
            )
            .order_by(Conversation.last_message_at.desc().nulls_last())
        )
        return list(result.scalars().all())

    async def list_participants(
        self, conversation_id: str
    ) -> list[tuple[Participant, Profile | None]]:
        result = await self.db.execute(
            select(Participant, Profile)
            .outerjoin(Profile, Profile.id == Participant.user_id)
            .where(Participant.conversation_id == conversation_id)
            .order_by(Participant.joined_at)
        )
        return [(participant, profile) for participant, profile in result.all()]

    async def get_last_message(
        self, conversation_id: str
    ) -> tuple[Message, Profile | None] | None:
        result = await self.db.execute(
            select(Message, Profile)
            .outerjoin(Profile, Profile.id == Message.sender_id)
            .where(Message.conversation_id == conversation_id, Message.is_deleted.is_(False))
            .order_by(Message.created_at.desc())
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def count_unread(self, conversation_id: str, user_id: str) -> int:
        """Messages from others newer than the participant's read marker."""
        result = await self.db.execute(
            select(func.count(Message.id))
            .join(
                Participant,
                and_(
                    Participant.conversation_id == Message.conversation_id,
                    Participant.user_id == user_id,
                ),
            )
            .where(
                Message.conversation_id == conversation_id,
                Message.is_deleted.is_(False),
                Message.sender_id != user_id,
                or_(
                    Participant.last_read_at.is_(None),
                    Message.created_at > Participant.last_read_at,
                ),
            )
        )
        return int(result.scalar_one() or 0)

    async def get_support_ticket(self, conversation_id: str) -> SupportTicket | None:
        result = await self.db.execute(
            select(SupportTicket).where(SupportTicket.conversation_id == conversation_id)
        )
        return result.scalar_one_or_none()

    # -- notifications --------------------------------------------------------

    async def insert_notification(self, notification: Notification) -> Notification:
        async with self.db.begin_nested():
            self.db.add(notification)
        return notification
