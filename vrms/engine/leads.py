"""CRM lead registration for claimed identities."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from vrms.errors import AppError, ErrorKind
from vrms.models import Customer
from vrms.storage.repositories import DuplicateKey, IdentityStore
from vrms.utils.normalization import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeadContact:
    email: str
    full_name: str | None = None
    phone: str | None = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerLeadRegistrar:
    """Upserts CRM customer rows, merging tags instead of overwriting them."""

    def __init__(self, store: IdentityStore):
        self.store = store

    async def register_lead(
        self,
        identity_id: str,
        property_id: str,
        company_id: str,
        contact: LeadContact,
        tag: str,
    ) -> None:
        """Record the identity as a lead of the company. Never raises.

        Looked up by (identity, company), not (email, property): one record per
        company is reused across that company's properties on this path.
        Runs in its own SAVEPOINT so a failure leaves the session usable for
        the conversation that follows.
        """
        try:
            async with self.store.savepoint():
                await self._register(identity_id, property_id, company_id, contact, tag)
        except Exception:
            logger.exception(
                "Failed to register CRM lead for %s (company %s)", identity_id, company_id
            )
            return
        try:
            await self.store.commit()
        except Exception:
            logger.exception(
                "Failed to commit CRM lead for %s (company %s)", identity_id, company_id
            )
            await self.store.rollback()

    async def _register(
        self,
        identity_id: str,
        property_id: str,
        company_id: str,
        contact: LeadContact,
        tag: str,
    ) -> None:
        existing = await self.store.get_customer_by_user_company(identity_id, company_id)
        if existing is None:
            result = await self.store.insert_customer(
                Customer(
                    id=str(uuid4()),
                    user_id=identity_id,
                    company_id=company_id,
                    property_id=property_id,
                    first_property_id=property_id,
                    email=contact.email,
                    full_name=contact.full_name,
                    phone=contact.phone,
                    source="chat",
                    status="lead",
                    tags=[tag],
                    total_bookings=0,
                    total_spent=0,
                    last_contact_date=_now(),
                )
            )
            if not isinstance(result, DuplicateKey):
                logger.info("Customer %s created as lead with tag %s", result.id, tag)
                return

            logger.warning(
                "Customer insert for %s lost a race (%s), re-fetching",
                contact.email,
                result.constraint,
            )
            existing = await self.store.get_customer_by_user_company(identity_id, company_id)
            if existing is None:
                existing = await self.store.get_customer_by_email_property(
                    contact.email, property_id
                )
                if existing is None:
                    logger.error("Customer for %s vanished after duplicate insert", contact.email)
                    return
                if not existing.user_id:
                    logger.info("Linking customer %s to %s", existing.id, identity_id)
                    await self.store.update_customer(existing, user_id=identity_id)

        await self._merge_tag(existing, tag)

    async def _merge_tag(self, customer: Customer, tag: str) -> None:
        tags = list(customer.tags or [])
        if tag in tags:
            logger.info("Customer %s already tagged %s", customer.id, tag)
            await self.store.update_customer(customer, last_contact_date=_now())
            return
        await self.store.update_customer(
            customer, tags=tags + [tag], last_contact_date=_now()
        )
        logger.info("Added tag %s to customer %s", tag, customer.id)

    async def find_or_create(
        self,
        email: str,
        property_id: str,
        company_id: str,
        full_name: str | None = None,
        phone: str | None = None,
        user_id: str | None = None,
        source: str = "manual",
    ) -> Customer:
        """Property-scoped customer for an email, created as a lead when missing.

        Fills only fields that are still empty on an existing row.
        """
        email = normalize_email(email)
        if not email:
            raise AppError(ErrorKind.VALIDATION_ERROR, "Customer email is required")

        existing = await self.store.get_customer_by_email_property(email, property_id)
        if existing is None:
            result = await self.store.insert_customer(
                Customer(
                    id=str(uuid4()),
                    user_id=user_id,
                    company_id=company_id,
                    property_id=property_id,
                    first_property_id=property_id,
                    email=email,
                    full_name=full_name,
                    phone=phone,
                    source=source,
                    status="lead",
                    tags=[],
                    total_bookings=0,
                    total_spent=0,
                )
            )
            if not isinstance(result, DuplicateKey):
                logger.info("Customer %s created for %s at property %s", result.id, email, property_id)
                return result
            logger.warning("Customer insert for %s lost a race, re-fetching", email)
            existing = await self.store.get_customer_by_email_property(email, property_id)
            if existing is None:
                raise AppError(ErrorKind.INTERNAL_ERROR, "Failed to create customer")
            return existing

        updates = {}
        if full_name and not existing.full_name:
            updates["full_name"] = full_name
        if phone and not existing.phone:
            updates["phone"] = phone
        if user_id and not existing.user_id:
            updates["user_id"] = user_id
        if updates:
            logger.info("Filling %s on customer %s", sorted(updates), existing.id)
            await self.store.update_customer(existing, **updates)
        return existing
