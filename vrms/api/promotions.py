"""Promotion claim endpoint - public, unauthenticated."""

from typing import Annotated

from fastapi import APIRouter, Depends

from vrms.api.deps import get_claim_service
from vrms.engine.claims import ClaimInput, PromoClaimService
from vrms.schemas.promotion import ClaimRequest, ClaimResponse

router = APIRouter()


@router.post("/promotions/claim", response_model=ClaimResponse)
async def claim_promotion(
    body: ClaimRequest,
    service: Annotated[PromoClaimService, Depends(get_claim_service)],
):
    """
    Claim a promotion as a guest.
    Provisions the guest account if needed, records the guest as a CRM lead
    and opens a conversation with the property owner.
    """
    result = await service.claim(
        ClaimInput(
            promotion_id=str(body.promotion_id),
            property_id=str(body.property_id),
            guest_name=body.guest_name,
            guest_email=body.guest_email,
            guest_phone=body.guest_phone,
        )
    )
    return ClaimResponse(
        message="Promotion claimed. The property owner will send you the promo code in your messages.",
        conversation_id=result.conversation_id,
        guest_user_id=result.guest_user_id,
        is_new_user=result.is_new_user,
    )
