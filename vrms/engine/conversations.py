"""Binding claimed identities to property conversations, and reading them back per customer."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from vrms.errors import AppError, ErrorKind
from vrms.models import Conversation, Message, Participant, Promotion
from vrms.schemas.conversation import (
    ConversationDetails,
    MessageDetails,
    ParticipantDetails,
    ProfileSummary,
    PropertySummary,
    SupportTicketSummary,
)
from vrms.storage.repositories import IdentityStore
from vrms.utils.normalization import format_amount

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_discount(promotion: Promotion) -> str:
    """Headline for a promotion's discount, e.g. "20% OFF"."""
    value = format_amount(promotion.discount_value)
    if promotion.discount_type == "percentage":
        return f"{value}% OFF"
    if promotion.discount_type == "fixed_amount":
        return f"${value} OFF"
    return f"{value} Free Nights"


def build_claim_message(promotion: Promotion) -> str:
    """Seed message the claimant sends to the property owner."""
    details = f"Details: {promotion.description}\n\n" if promotion.description else ""
    return (
        f"I would like to claim the promo: {promotion.name} - {describe_discount(promotion)}."
        f"\n\n{details}"
        "Please send me the promo code and instructions on how to use it for my booking."
    )


class ConversationBinder:
    """Opens a fresh guest_inquiry conversation between claimant and owner."""

    def __init__(self, store: IdentityStore):
        self.store = store

    async def bind_conversation(
        self,
        identity_id: str,
        property_id: str,
        owner_id: str,
        promotion: Promotion,
    ) -> Conversation:
        """Create the conversation, its participants and the seed message.

        Every claim gets its own conversation; earlier promo threads are not reused.
        """
        now = datetime.now(timezone.utc)
        conversation_id = str(uuid4())
        conversation = Conversation(
            id=conversation_id,
            type="guest_inquiry",
            title=f"Promo Claim: {promotion.name}",
            property_id=property_id,
            created_by=identity_id,
            is_archived=False,
            last_message_at=now,
        )
        participants = [
            Participant(
                id=str(uuid4()),
                conversation_id=conversation_id,
                user_id=identity_id,
                role="owner",
            )
        ]
        if owner_id != identity_id:
            participants.append(
                Participant(
                    id=str(uuid4()),
                    conversation_id=conversation_id,
                    user_id=owner_id,
                    role="member",
                )
            )
        message = Message(
            id=str(uuid4()),
            conversation_id=conversation_id,
            sender_id=identity_id,
            content=build_claim_message(promotion),
            message_type="text",
            is_deleted=False,
            created_at=now,
        )
        try:
            await self.store.insert_conversation(conversation, participants, message)
            await self.store.commit()
        except SQLAlchemyError as exc:
            logger.error("Failed to create conversation for %s: %s", identity_id, exc)
            raise AppError(ErrorKind.INTERNAL_ERROR, "Failed to create conversation") from exc
        logger.info(
            "Conversation %s created for %s with owner %s", conversation_id, identity_id, owner_id
        )
        return conversation


class ConversationAggregator:
    """Lists one CRM customer's conversations, isolated to the customer's property."""

    def __init__(self, store: IdentityStore):
        self.store = store

    async def list_conversations(
        self, customer_id: str, archived: bool = False
    ) -> list[ConversationDetails]:
        customer = await self.store.get_customer(customer_id)
        if customer is None:
            raise AppError(ErrorKind.NOT_FOUND, "Customer not found")

        if customer.user_id:
            user_ids = [customer.user_id]
        else:
            # Guest may have signed up through another path since the row was written.
            user_ids = await self.store.find_profile_ids_by_email(customer.email)
            if not user_ids:
                logger.info("Customer %s has no account yet, no conversations", customer_id)
                return []

        conversations = await self.store.list_participant_conversations(
            user_ids, customer.property_id, archived
        )
        conversations = [c for c in conversations if c.property_id == customer.property_id]
        logger.info(
            "Customer %s has %d conversations at property %s",
            customer_id,
            len(conversations),
            customer.property_id,
        )

        results = []
        for conversation in conversations:
            results.append(await self._enrich(conversation, customer.user_id))
        return results

    async def _attempt(
        self,
        what: str,
        conversation_id: str,
        load: Callable[[], Awaitable[T]],
        default: T,
    ) -> T:
        try:
            async with self.store.savepoint():
                return await load()
        except Exception:
            logger.exception("Failed to load %s for conversation %s", what, conversation_id)
            return default

    async def _enrich(
        self, conversation: Conversation, user_id: str | None
    ) -> ConversationDetails:
        details = ConversationDetails.model_validate(conversation)
        cid = conversation.id

        async def participants():
            rows = await self.store.list_participants(cid)
            return [
                ParticipantDetails.model_validate(participant).model_copy(
                    update={"user": ProfileSummary.model_validate(profile) if profile else None}
                )
                for participant, profile in rows
            ]

        async def property_summary():
            if not conversation.property_id:
                return None
            prop = await self.store.get_property(conversation.property_id)
            return PropertySummary.model_validate(prop) if prop else None

        async def last_message():
            row = await self.store.get_last_message(cid)
            if row is None:
                return None
            message, sender = row
            return MessageDetails.model_validate(message).model_copy(
                update={"sender": ProfileSummary.model_validate(sender) if sender else None}
            )

        async def unread_count():
            if not user_id:
                return 0
            return await self.store.count_unread(cid, user_id)

        async def support_ticket():
            if conversation.type != "support":
                return None
            ticket = await self.store.get_support_ticket(cid)
            return SupportTicketSummary.model_validate(ticket) if ticket else None

        details.participants = await self._attempt("participants", cid, participants, [])
        details.property = await self._attempt("property", cid, property_summary, None)
        details.last_message = await self._attempt("last message", cid, last_message, None)
        details.unread_count = await self._attempt("unread count", cid, unread_count, 0)
        details.support_ticket = await self._attempt(
            "support ticket", cid, support_ticket, None
        )
        return details
