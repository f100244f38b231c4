"""Loan request endpoints - borrower applications and lender decisions"""

import time
from typing import List

from fastapi import APIRouter, Depends, Query, Request

from lending_gateway.api.dependencies import get_lifecycle, get_profiles, get_request_id
from lending_gateway.api.v1.schemas import (
    ContractResponse,
    LoanRequestCreate,
    LoanRequestDecision,
    LoanRequestResponse,
)
from lending_gateway.domain.lifecycle import LoanLifecycle
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.infrastructure.observability.logging import log_operation
from lending_gateway.infrastructure.observability.metrics import loan_request_counter, record_contract

router = APIRouter()


@router.post("/requests", response_model=LoanRequestResponse, status_code=201)
async def create_request(
    body: LoanRequestCreate,
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
    profiles: ProfileService = Depends(get_profiles),
):
    offer = await lifecycle.get_offer(body.offer_id)
    borrower = await profiles.get_user(body.borrower_id)
    loan_request = await lifecycle.create_request(offer, borrower)
    loan_request_counter.labels(status="PENDING").inc()
    return LoanRequestResponse.model_validate(loan_request)


@router.get("/requests", response_model=List[LoanRequestResponse])
async def list_borrower_requests(
    borrower_id: str = Query(..., description="Borrower identifier"),
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
):
    requests = await lifecycle.list_requests_for_borrower(borrower_id)
    return [LoanRequestResponse.model_validate(r) for r in requests]


@router.get("/requests/pending", response_model=List[LoanRequestResponse])
async def list_pending_for_lender(
    lender_id: str = Query(..., description="Lender identifier"),
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
):
    """Requests awaiting a decision on the lender's offers"""
    requests = await lifecycle.list_pending_requests_for_lender(lender_id)
    return [LoanRequestResponse.model_validate(r) for r in requests]


@router.post("/requests/{request_id}/approve", response_model=ContractResponse, status_code=201)
async def approve_request(
    request_id: str,
    body: LoanRequestDecision,
    request: Request,
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
):
    """
    Approve a pending request.

    Returns the contract created together with the approval; the two are
    persisted as one unit, so either both exist or neither does.
    """
    start_time = time.time()
    contract = await lifecycle.approve_request(request_id, body.lender_id)

    record_contract(contract.total_amount)
    duration_ms = (time.time() - start_time) * 1000
    log_operation(
        get_request_id(request),
        "approve_request",
        "approved",
        duration_ms,
        request_id_approved=request_id,
        contract_id=contract.id,
    )
    return ContractResponse.model_validate(contract)


@router.post("/requests/{request_id}/reject", response_model=LoanRequestResponse)
async def reject_request(
    request_id: str,
    body: LoanRequestDecision,
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
):
    loan_request = await lifecycle.reject_request(request_id, body.lender_id)
    loan_request_counter.labels(status="REJECTED").inc()
    return LoanRequestResponse.model_validate(loan_request)
