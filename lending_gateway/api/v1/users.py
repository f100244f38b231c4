"""User profile, address and redemption history endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from lending_gateway.api.dependencies import get_ledger, get_profiles
from lending_gateway.api.v1.schemas import (
    AddressResponse,
    AddressUpsert,
    RedemptionResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from lending_gateway.domain.ledger import ADDRESS_REGISTERED, POINT_AWARDS, PROFILE_UPDATE, PointsLedger
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.infrastructure.observability.metrics import record_points

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
async def register_user(body: UserCreate, profiles: ProfileService = Depends(get_profiles)):
    user = await profiles.register_user(
        email=body.email,
        full_name=body.full_name,
        tax_id=body.tax_id,
        phone=body.phone,
    )
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, profiles: ProfileService = Depends(get_profiles)):
    return UserResponse.model_validate(await profiles.get_user(user_id))


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_profile(user_id: str, body: UserUpdate, profiles: ProfileService = Depends(get_profiles)):
    """
    Save profile fields.

    A successful save also grants profile-update points; if the points award
    fails the profile is still saved and returned.
    """
    changes = body.model_dump(exclude_unset=True)
    before = await profiles.get_user(user_id)
    user = await profiles.update_profile(user_id, **changes)
    if changes:
        record_points(PROFILE_UPDATE, POINT_AWARDS[PROFILE_UPDATE], applied=user.points != before.points)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}/address", response_model=Optional[AddressResponse])
async def get_address(user_id: str, profiles: ProfileService = Depends(get_profiles)):
    await profiles.get_user(user_id)
    address = await profiles.get_address(user_id)
    return AddressResponse.model_validate(address) if address is not None else None


@router.put("/users/{user_id}/address", response_model=AddressResponse)
async def save_address(user_id: str, body: AddressUpsert, profiles: ProfileService = Depends(get_profiles)):
    """
    Create or replace the user's address.

    Only the first registration grants address points.
    """
    before = await profiles.get_user(user_id)
    first_registration = await profiles.get_address(user_id) is None

    address = await profiles.save_address(user_id, **body.model_dump())
    if first_registration:
        after = await profiles.get_user(user_id)
        amount = POINT_AWARDS[ADDRESS_REGISTERED]
        record_points(ADDRESS_REGISTERED, amount, applied=after.points != before.points)
    return AddressResponse.model_validate(address)


@router.get("/users/{user_id}/redemptions", response_model=List[RedemptionResponse])
async def list_redemptions(user_id: str, ledger: PointsLedger = Depends(get_ledger)):
    redemptions = await ledger.list_redemptions_for_user(user_id)
    return [RedemptionResponse.model_validate(r) for r in redemptions]
