"""Loan lifecycle - Offer -> Request -> Contract state machine"""

import logging
from datetime import datetime
from typing import Callable, Dict, List

from lending_gateway.domain.amortization import installment, total_amount
from lending_gateway.domain.eligibility import validate_offer
from lending_gateway.domain.exceptions import validation_error
from lending_gateway.domain.gateway import PersistenceGateway
from lending_gateway.domain.models import (
    Contract,
    ContractStatus,
    LoanRequest,
    Offer,
    OfferDraft,
    RequestStatus,
    User,
)
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import add_days, utc_now
from lending_gateway.utils.identifiers import new_id

NEXT_PAYMENT_INTERVAL_DAYS = 30


class LoanLifecycle:
    """
    Owns every transition from offer to contract.

    Each persistence call goes through the resilient executor. Validation
    failures are raised as VALIDATION LendingErrors before anything is written;
    exhausted retries surface as NETWORK so callers can tell "fix your input"
    from "try again later".
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        executor: ResilientExecutor,
        clock: Callable[[], datetime] = utc_now,
        next_payment_interval_days: int = NEXT_PAYMENT_INTERVAL_DAYS,
    ):
        self.gateway = gateway
        self.executor = executor
        self.clock = clock
        self.next_payment_interval_days = next_payment_interval_days

    # Offers

    async def create_offer(self, draft: OfferDraft, lender_level: int) -> Offer:
        validation = validate_offer(draft.amount, draft.term_months, draft.monthly_rate_percent, lender_level)
        if not validation.is_valid:
            logging.info(
                "Offer rejected",
                extra={"step": "offer_rejected", "lender_id": draft.lender_id, "rule": validation.rule},
            )
            raise validation_error(validation.reason, rule=validation.rule)

        offer = Offer(
            id=new_id(),
            lender_id=draft.lender_id,
            amount=draft.amount,
            monthly_rate_percent=draft.monthly_rate_percent,
            term_months=draft.term_months,
            description=draft.description,
            created_at=self.clock(),
        )
        stored = await self.executor.run(lambda: self.gateway.insert(offer))
        logging.info("Offer created", extra={"step": "offer_created", "offer_id": stored.id})
        return stored

    async def get_offer(self, offer_id: str) -> Offer:
        offer = await self.executor.run(lambda: self.gateway.get(Offer, offer_id))
        if offer is None:
            raise validation_error("Offer not found", offer_id=offer_id)
        return offer

    async def list_offers(self) -> List[Offer]:
        return await self.executor.run(lambda: self.gateway.list(Offer))

    # Requests

    async def create_request(self, offer: Offer, borrower: User) -> LoanRequest:
        """Open a PENDING request for the full offer amount"""
        if not borrower.tax_id:
            raise validation_error("An identity document (CPF/CNPJ) is required to request a loan")

        pending = await self.executor.run(
            lambda: self.gateway.list(
                LoanRequest,
                offer_id=offer.id,
                borrower_id=borrower.id,
                status=RequestStatus.PENDING,
            )
        )
        if pending:
            raise validation_error(
                "A pending request for this offer already exists",
                offer_id=offer.id,
                request_id=pending[0].id,
            )

        request = LoanRequest(
            id=new_id(),
            offer_id=offer.id,
            borrower_id=borrower.id,
            amount_requested=offer.amount,
            status=RequestStatus.PENDING,
            request_date=self.clock(),
        )
        stored = await self.executor.run(lambda: self.gateway.insert(request))
        logging.info(
            "Loan request created",
            extra={"step": "request_created", "request_id": stored.id, "offer_id": offer.id},
        )
        return stored

    async def list_requests_for_borrower(self, borrower_id: str) -> List[LoanRequest]:
        return await self.executor.run(lambda: self.gateway.list(LoanRequest, borrower_id=borrower_id))

    async def list_pending_requests_for_lender(self, lender_id: str) -> List[LoanRequest]:
        """PENDING requests against offers published by `lender_id`"""
        offers = await self.executor.run(lambda: self.gateway.list(Offer, lender_id=lender_id))
        offer_ids = [o.id for o in offers]
        if not offer_ids:
            return []

        return await self.executor.run(
            lambda: self.gateway.list(LoanRequest, offer_id=offer_ids, status=RequestStatus.PENDING)
        )

    async def _load_pending_request(self, request_id: str) -> LoanRequest:
        request = await self.executor.run(lambda: self.gateway.get(LoanRequest, request_id))
        if request is None:
            raise validation_error("Loan request not found", request_id=request_id)
        if request.status != RequestStatus.PENDING:
            raise validation_error(
                f"Loan request was already {request.status.value.lower()}",
                request_id=request_id,
            )
        return request

    def build_contract(self, request: LoanRequest, offer: Offer, lender_id: str) -> Contract:
        monthly_payment = installment(request.amount_requested, offer.monthly_rate_percent, offer.term_months)
        total = total_amount(monthly_payment, offer.term_months)
        created_at = self.clock()

        return Contract(
            id=new_id(),
            offer_id=offer.id,
            borrower_id=request.borrower_id,
            lender_id=lender_id,
            principal=request.amount_requested,
            total_amount=total,
            monthly_payment=monthly_payment,
            remaining_amount=total,
            term_months=offer.term_months,
            months_paid=0,
            status=ContractStatus.ACTIVE,
            created_at=created_at,
            next_payment_date=add_days(created_at, self.next_payment_interval_days),
        )

    async def approve_request(self, request_id: str, lender_id: str) -> Contract:
        """
        Approve a PENDING request and create its contract.

        Flow:
        1. Load the request (must exist and be PENDING)
        2. Load the originating offer (must exist)
        3. Compute the installment and total from the offer terms
        4. In a single unit of work: flip the request to APPROVED (only if it is
           still PENDING) and insert the contract

        Step 4 is retried as a whole. The contract id is fixed before the first
        attempt, so a retry that finds the contract already stored returns it
        instead of writing a second one. A failure inside the unit rolls back
        the status change, so an APPROVED request never lacks its contract.
        """
        request = await self._load_pending_request(request_id)
        offer = await self.executor.run(lambda: self.gateway.get(Offer, request.offer_id))
        if offer is None:
            raise validation_error("Offer not found", offer_id=request.offer_id)

        contract = self.build_contract(request, offer, lender_id)

        async def commit() -> Contract:
            async with self.gateway.transaction():
                existing = await self.gateway.get(Contract, contract.id)
                if existing is not None:
                    return existing

                approved = await self.gateway.update(
                    LoanRequest,
                    request.id,
                    {"status": RequestStatus.APPROVED},
                    expected={"status": RequestStatus.PENDING},
                )
                if approved is None:
                    raise validation_error("Loan request was already decided", request_id=request.id)

                return await self.gateway.insert(contract)

        stored = await self.executor.run(commit)
        logging.info(
            "Loan request approved",
            extra={
                "step": "request_approved",
                "request_id": request.id,
                "contract_id": stored.id,
                "lender_id": lender_id,
            },
        )
        return stored

    async def reject_request(self, request_id: str, lender_id: str) -> LoanRequest:
        """Terminal PENDING -> REJECTED transition with no other side effects"""
        request = await self._load_pending_request(request_id)

        async def commit() -> LoanRequest:
            rejected = await self.gateway.update(
                LoanRequest,
                request.id,
                {"status": RequestStatus.REJECTED},
                expected={"status": RequestStatus.PENDING},
            )
            if rejected is None:
                current = await self.gateway.get(LoanRequest, request.id)
                # A lost response on a previous attempt leaves the row already rejected
                if current is not None and current.status == RequestStatus.REJECTED:
                    return current
                raise validation_error("Loan request was already decided", request_id=request.id)
            return rejected

        stored = await self.executor.run(commit)
        logging.info(
            "Loan request rejected",
            extra={"step": "request_rejected", "request_id": request.id, "lender_id": lender_id},
        )
        return stored

    # Contracts

    async def list_contracts_for_user(self, user_id: str) -> List[Contract]:
        """Contracts where the user is either borrower or lender"""
        as_borrower = await self.executor.run(lambda: self.gateway.list(Contract, borrower_id=user_id))
        as_lender = await self.executor.run(lambda: self.gateway.list(Contract, lender_id=user_id))

        merged: Dict[str, Contract] = {c.id: c for c in as_borrower}
        for contract in as_lender:
            merged.setdefault(contract.id, contract)
        return list(merged.values())

    async def get_contract(self, contract_id: str) -> Contract:
        contract = await self.executor.run(lambda: self.gateway.get(Contract, contract_id))
        if contract is None:
            raise validation_error("Contract not found", contract_id=contract_id)
        return contract
