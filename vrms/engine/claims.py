"""Promotion claim flow.

Steps run in a fixed order: validate promotion and property, provision the
identity, register the CRM lead, bind the conversation, then the post-commit
notification and verification steps. The flow is not transactional - each
stage commits, so a provisioned identity survives a later failure and the
next attempt finds it.
"""

import logging
from dataclasses import dataclass

from vrms.auth.provider import AuthProvider
from vrms.config import settings
from vrms.engine.conversations import ConversationBinder
from vrms.engine.identity import AccountProvisioner, IdentityResolver
from vrms.engine.leads import CustomerLeadRegistrar, LeadContact
from vrms.engine.notifications import NotificationDispatcher
from vrms.engine.outbox import PostCommitOutbox
from vrms.errors import AppError, ErrorKind
from vrms.models import Promotion
from vrms.storage.repositories import IdentityStore
from vrms.utils.normalization import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimInput:
    promotion_id: str
    property_id: str
    guest_name: str
    guest_email: str
    guest_phone: str


@dataclass(frozen=True)
class ClaimResult:
    conversation_id: str
    guest_user_id: str
    is_new_user: bool


class PromoClaimService:
    """Runs a guest's promotion claim end to end."""

    def __init__(
        self,
        store: IdentityStore,
        auth: AuthProvider,
        notifier: NotificationDispatcher,
        claim_tag: str | None = None,
    ):
        self.store = store
        self.auth = auth
        self.notifier = notifier
        self.claim_tag = claim_tag or settings.promo_claim_tag
        self.resolver = IdentityResolver(store)
        self.provisioner = AccountProvisioner(store, auth, self.resolver)
        self.registrar = CustomerLeadRegistrar(store)
        self.binder = ConversationBinder(store)

    async def _load_promotion(self, promotion_id: str) -> Promotion:
        promotion = await self.store.get_promotion(promotion_id)
        if promotion is None:
            raise AppError(ErrorKind.NOT_FOUND, "Promotion not found")
        if not promotion.is_claimable:
            raise AppError(ErrorKind.BAD_REQUEST, "This promotion is not claimable")
        if not promotion.is_active:
            raise AppError(ErrorKind.BAD_REQUEST, "This promotion is no longer active")
        return promotion

    async def claim(self, data: ClaimInput) -> ClaimResult:
        email = normalize_email(data.guest_email)
        logger.info("Processing claim of promotion %s by %s", data.promotion_id, email)

        promotion = await self._load_promotion(data.promotion_id)

        prop = await self.store.get_property(data.property_id)
        if prop is None:
            raise AppError(ErrorKind.NOT_FOUND, "Property not found")
        company = await self.store.get_company(prop.company_id)
        if company is None:
            raise AppError(ErrorKind.NOT_FOUND, "Property owner not found")
        owner_id = company.user_id

        identity = await self.provisioner.provision_or_fetch(
            email, data.guest_name, data.guest_phone
        )
        await self.store.commit()

        await self.registrar.register_lead(
            identity.identity_id,
            prop.id,
            company.id,
            LeadContact(email=email, full_name=data.guest_name, phone=data.guest_phone),
            self.claim_tag,
        )

        conversation = await self.binder.bind_conversation(
            identity.identity_id, prop.id, owner_id, promotion
        )

        outbox = PostCommitOutbox()
        outbox.add(
            "owner_notification",
            lambda: self.notifier.send(
                owner_id,
                "New Promo Claim Lead",
                f'{data.guest_name} has claimed the "{promotion.name}" promotion. '
                "Check your messages to send them the promo code.",
                "high",
                f"/manage/chat/conversations/{conversation.id}",
            ),
        )
        if identity.is_new_account:
            outbox.add("verification_email", lambda: self._send_verification(email))
        await outbox.drain()

        logger.info(
            "Claim of promotion %s completed: conversation %s, user %s (new=%s)",
            promotion.id,
            conversation.id,
            identity.identity_id,
            identity.is_new_account,
        )
        return ClaimResult(
            conversation_id=conversation.id,
            guest_user_id=identity.identity_id,
            is_new_user=identity.is_new_account,
        )

    async def _send_verification(self, email: str) -> None:
        link = await self.auth.generate_verification_link(email)
        logger.info("Verification link generated for %s", email)
        logger.debug("Verification link for %s: %s", email, link)
        # TODO: deliver the link through the transactional email service
