"""GET/POST /v1/offers - published loan offers"""

import time
from typing import List

from fastapi import APIRouter, Depends, Request

from lending_gateway.api.dependencies import get_lifecycle, get_profiles, get_request_id
from lending_gateway.api.v1.schemas import OfferCreate, OfferResponse
from lending_gateway.domain.exceptions import ErrorKind, LendingError
from lending_gateway.domain.lifecycle import LoanLifecycle
from lending_gateway.domain.models import OfferDraft
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.infrastructure.observability.logging import log_operation
from lending_gateway.infrastructure.observability.metrics import record_offer

router = APIRouter()


@router.get("/offers", response_model=List[OfferResponse])
async def list_offers(lifecycle: LoanLifecycle = Depends(get_lifecycle)):
    offers = await lifecycle.list_offers()
    return [OfferResponse.from_offer(o) for o in offers]


@router.post("/offers", response_model=OfferResponse, status_code=201)
async def create_offer(
    body: OfferCreate,
    request: Request,
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
    profiles: ProfileService = Depends(get_profiles),
):
    """
    Publish a loan offer.

    The lender's level is read from the stored profile, never from the request
    body, so tier rules cannot be bypassed by the client.
    """
    start_time = time.time()
    lender = await profiles.get_user(body.lender_id)

    try:
        offer = await lifecycle.create_offer(
            OfferDraft(
                lender_id=lender.id,
                amount=body.amount,
                monthly_rate_percent=body.monthly_rate_percent,
                term_months=body.term_months,
                description=body.description,
            ),
            lender_level=lender.level,
        )
    except LendingError as e:
        if e.kind == ErrorKind.VALIDATION and "rule" in e.details:
            record_offer(created=False, rule=e.details["rule"])
        raise

    record_offer(created=True)
    duration_ms = (time.time() - start_time) * 1000
    log_operation(get_request_id(request), "create_offer", "created", duration_ms, offer_id=offer.id)

    return OfferResponse.from_offer(offer)
