"""GET /v1/contracts - contracts and their repayment schedules"""

from typing import List

from fastapi import APIRouter, Depends, Query

from lending_gateway.api.dependencies import get_lifecycle
from lending_gateway.api.v1.schemas import ContractDetailResponse, ContractResponse, ScheduleRowSchema
from lending_gateway.domain.amortization import amortization_schedule
from lending_gateway.domain.lifecycle import LoanLifecycle

router = APIRouter()


@router.get("/contracts", response_model=List[ContractResponse])
async def list_contracts(
    user_id: str = Query(..., description="Borrower or lender identifier"),
    lifecycle: LoanLifecycle = Depends(get_lifecycle),
):
    contracts = await lifecycle.list_contracts_for_user(user_id)
    return [ContractResponse.model_validate(c) for c in contracts]


@router.get("/contracts/{contract_id}", response_model=ContractDetailResponse)
async def get_contract(contract_id: str, lifecycle: LoanLifecycle = Depends(get_lifecycle)):
    """
    Retrieve a contract with its month-by-month schedule.

    The schedule is rebuilt from the contract's own principal and term at the
    originating offer's rate, so it always matches the contract's installment.
    """
    contract = await lifecycle.get_contract(contract_id)
    offer = await lifecycle.get_offer(contract.offer_id)

    schedule = amortization_schedule(contract.principal, offer.monthly_rate_percent, contract.term_months)
    return ContractDetailResponse(
        **ContractResponse.model_validate(contract).model_dump(),
        schedule=[ScheduleRowSchema.model_validate(row) for row in schedule],
    )
