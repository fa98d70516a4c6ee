"""CRM customer endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from vrms.api.deps import StoreDep, get_conversation_aggregator, get_lead_registrar
from vrms.engine.conversations import ConversationAggregator
from vrms.engine.leads import CustomerLeadRegistrar
from vrms.errors import AppError, ErrorKind
from vrms.schemas.conversation import ConversationDetails
from vrms.schemas.customer import CustomerResponse, FindOrCreateCustomerRequest

router = APIRouter()


@router.post("/customers", response_model=CustomerResponse)
async def find_or_create_customer(
    body: FindOrCreateCustomerRequest,
    store: StoreDep,
    registrar: Annotated[CustomerLeadRegistrar, Depends(get_lead_registrar)],
):
    """Find the customer for an email at a property, creating a lead if missing."""
    prop = await store.get_property(str(body.property_id))
    if prop is None:
        raise AppError(ErrorKind.NOT_FOUND, "Property not found")
    customer = await registrar.find_or_create(
        email=body.email,
        property_id=prop.id,
        company_id=prop.company_id,
        full_name=body.full_name,
        phone=body.phone,
        user_id=str(body.user_id) if body.user_id else None,
        source=body.source,
    )
    return CustomerResponse.model_validate(customer)


@router.get(
    "/customers/{customer_id}/conversations",
    response_model=list[ConversationDetails],
)
async def list_customer_conversations(
    customer_id: UUID,
    aggregator: Annotated[ConversationAggregator, Depends(get_conversation_aggregator)],
    archived: bool = Query(False),
):
    """Conversations of a customer, limited to the customer's property."""
    return await aggregator.list_conversations(str(customer_id), archived=archived)
