"""FastAPI dependencies wiring the store and collaborators into each component."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vrms.auth.provider import AuthProvider, GoTrueAuthProvider
from vrms.database import get_db
from vrms.engine.claims import PromoClaimService
from vrms.engine.conversations import ConversationAggregator
from vrms.engine.leads import CustomerLeadRegistrar
from vrms.engine.notifications import StoreNotificationDispatcher
from vrms.storage.repositories import IdentityStore


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> IdentityStore:
    return IdentityStore(db)


def get_auth_provider() -> AuthProvider:
    return GoTrueAuthProvider()


StoreDep = Annotated[IdentityStore, Depends(get_store)]
AuthProviderDep = Annotated[AuthProvider, Depends(get_auth_provider)]


def get_claim_service(store: StoreDep, auth: AuthProviderDep) -> PromoClaimService:
    return PromoClaimService(store, auth, StoreNotificationDispatcher(store))


def get_conversation_aggregator(store: StoreDep) -> ConversationAggregator:
    return ConversationAggregator(store)


def get_lead_registrar(store: StoreDep) -> CustomerLeadRegistrar:
    return CustomerLeadRegistrar(store)
