"""Referral invitations"""

from typing import List

from fastapi import APIRouter, Depends

from lending_gateway.api.dependencies import get_referrals
from lending_gateway.api.v1.schemas import ReferralCreate, ReferralResponse
from lending_gateway.domain.referrals import ReferralService

router = APIRouter()


@router.post("/users/{user_id}/referrals", response_model=ReferralResponse, status_code=201)
async def create_referral(user_id: str, body: ReferralCreate, referrals: ReferralService = Depends(get_referrals)):
    referral = await referrals.create_referral(user_id, body.referred_name, body.referred_email)
    return ReferralResponse.model_validate(referral)


@router.get("/users/{user_id}/referrals", response_model=List[ReferralResponse])
async def list_referrals(user_id: str, referrals: ReferralService = Depends(get_referrals)):
    return [ReferralResponse.model_validate(r) for r in await referrals.list_referrals(user_id)]
