"""Guest identity resolution and idempotent account provisioning.

Concurrency control is optimistic: nothing is locked between the existence
check and the create call. Two claims for the same email can both see "no
profile" and both try to create; the loser gets a duplicate signal from the
auth provider or the store and reconciles by re-fetching the winner.
"""

import logging
from dataclasses import dataclass

from vrms.auth.provider import AuthProvider, AuthProviderError, DuplicateAccount
from vrms.config import settings
from vrms.errors import AppError, ErrorKind
from vrms.models import Profile
from vrms.storage.repositories import DuplicateKey, IdentityStore
from vrms.utils.normalization import generate_temp_password, normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionedIdentity:
    """Outcome of provisioning - ``is_new_account`` when this call created the profile."""

    identity_id: str
    is_new_account: bool


class IdentityResolver:
    """Looks up an existing profile by normalized email. Read-only."""

    def __init__(self, store: IdentityStore):
        self.store = store

    async def resolve(self, email: str) -> Profile | None:
        email = normalize_email(email)
        if not email:
            return None
        return await self.store.get_profile_by_email(email)


class AccountProvisioner:
    """Creates whichever of auth account and profile is missing for an email."""

    def __init__(
        self,
        store: IdentityStore,
        auth: AuthProvider,
        resolver: IdentityResolver | None = None,
        user_type: str | None = None,
    ):
        self.store = store
        self.auth = auth
        self.resolver = resolver or IdentityResolver(store)
        self.user_type = user_type or settings.guest_user_type

    async def provision_or_fetch(
        self, email: str, name: str, phone: str | None
    ) -> ProvisionedIdentity:
        email = normalize_email(email)
        if not email:
            raise AppError(ErrorKind.VALIDATION_ERROR, "Guest email is required")

        existing = await self.resolver.resolve(email)
        if existing is not None:
            logger.info("Profile exists for %s: %s", email, existing.id)
            return ProvisionedIdentity(existing.id, is_new_account=False)

        logger.info("No profile for %s, creating guest account", email)
        try:
            outcome = await self.auth.create_account(
                email,
                generate_temp_password(),
                confirmed=False,
                metadata={"full_name": name},
            )
        except AuthProviderError as exc:
            logger.error("Failed to create auth account for %s: %s", email, exc)
            raise AppError(ErrorKind.INTERNAL_ERROR, "Failed to create guest account") from exc

        if isinstance(outcome, DuplicateAccount):
            # Account exists at the auth layer without a profile (earlier partial
            # failure, or a concurrent claim won the create).
            logger.warning("Auth account already registered for %s, locating it", email)
            try:
                account = await self.auth.find_account_by_email(email)
            except AuthProviderError as exc:
                logger.error("Failed to look up auth account for %s: %s", email, exc)
                raise AppError(
                    ErrorKind.INTERNAL_ERROR, "Failed to create or find guest account"
                ) from exc
            if account is None:
                logger.error("Auth provider reported %s as registered but has no such account", email)
                raise AppError(ErrorKind.INTERNAL_ERROR, "Failed to create or find guest account")
            return await self._create_profile(account.id, email, name, phone)

        logger.info("Auth account created for %s: %s", email, outcome.id)
        # Another claim may have created the profile after our create won.
        profile = await self.store.get_profile(outcome.id)
        if profile is not None:
            logger.info("Profile %s already created by a concurrent claim", profile.id)
            return ProvisionedIdentity(profile.id, is_new_account=False)
        return await self._create_profile(outcome.id, email, name, phone)

    async def _create_profile(
        self, identity_id: str, email: str, name: str, phone: str | None
    ) -> ProvisionedIdentity:
        result = await self.store.insert_profile(
            Profile(
                id=identity_id,
                email=email,
                full_name=name,
                phone=phone,
                user_type=self.user_type,
            )
        )
        if not isinstance(result, DuplicateKey):
            logger.info("Profile created for %s: %s", email, identity_id)
            return ProvisionedIdentity(identity_id, is_new_account=True)

        logger.warning(
            "Profile insert for %s lost a race (%s), re-fetching", email, result.constraint
        )
        winner = await self.store.get_profile(identity_id)
        if winner is None:
            winner = await self.store.get_profile_by_email(email)
        if winner is None or winner.id != identity_id:
            logger.error(
                "Profile conflict for %s cannot be reconciled with account %s", email, identity_id
            )
            raise AppError(
                ErrorKind.VALIDATION_ERROR,
                "A different account is already registered with this email",
            )
        return ProvisionedIdentity(winner.id, is_new_account=False)
