"""Guarantees pledged by a user"""

from typing import List

from fastapi import APIRouter, Depends

from lending_gateway.api.dependencies import get_guarantees, get_profiles
from lending_gateway.api.v1.schemas import GuaranteeCreate, GuaranteeResponse
from lending_gateway.domain.guarantees import GuaranteeService
from lending_gateway.domain.ledger import GUARANTEE_REGISTERED, POINT_AWARDS
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.infrastructure.observability.metrics import record_points

router = APIRouter()


@router.post("/users/{user_id}/guarantees", response_model=GuaranteeResponse, status_code=201)
async def register_guarantee(
    user_id: str,
    body: GuaranteeCreate,
    guarantees: GuaranteeService = Depends(get_guarantees),
    profiles: ProfileService = Depends(get_profiles),
):
    """
    Register a guarantee for verification.

    Each registration grants guarantee points; a failed award leaves the
    guarantee in place.
    """
    before = await profiles.get_user(user_id)
    guarantee = await guarantees.register_guarantee(user_id, **body.model_dump())
    after = await profiles.get_user(user_id)
    record_points(GUARANTEE_REGISTERED, POINT_AWARDS[GUARANTEE_REGISTERED], applied=after.points != before.points)
    return GuaranteeResponse.model_validate(guarantee)


@router.get("/users/{user_id}/guarantees", response_model=List[GuaranteeResponse])
async def list_guarantees(user_id: str, guarantees: GuaranteeService = Depends(get_guarantees)):
    return [GuaranteeResponse.model_validate(g) for g in await guarantees.list_guarantees(user_id)]
