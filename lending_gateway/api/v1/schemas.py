"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from lending_gateway.domain.amortization import installment, total_amount
from lending_gateway.domain.models import (
    ContractStatus,
    DocumentStatus,
    DocumentType,
    GuaranteeStatus,
    GuaranteeType,
    Offer,
    ReferralStatus,
    RequestStatus,
    RewardCategory,
)

TAX_ID_PATTERN = r"^(\d{11}|\d{14})$"  # CPF or CNPJ digits
POSTAL_CODE_PATTERN = r"^\d{5}-?\d{3}$"


class UserCreate(BaseModel):
    """Request body for POST /v1/users"""

    email: EmailStr
    full_name: str = Field(..., min_length=3, description="Full legal name")
    tax_id: str = Field("", pattern=r"^$|" + TAX_ID_PATTERN, description="CPF/CNPJ digits")
    phone: str = ""


class UserUpdate(BaseModel):
    """Request body for PATCH /v1/users/{user_id}"""

    full_name: Optional[str] = Field(None, min_length=3)
    tax_id: Optional[str] = Field(None, pattern=TAX_ID_PATTERN)
    phone: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    tax_id: str
    phone: str
    points: int
    level: int
    created_at: datetime


class AddressUpsert(BaseModel):
    """Request body for PUT /v1/users/{user_id}/address"""

    postal_code: str = Field(..., pattern=POSTAL_CODE_PATTERN, description="CEP, with or without the hyphen")
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1, max_length=16)
    complement: str = ""
    district: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2, description="Two-letter UF")


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    postal_code: str
    street: str
    number: str
    complement: str
    district: str
    city: str
    state: str


class GuaranteeCreate(BaseModel):
    """Request body for POST /v1/users/{user_id}/guarantees"""

    guarantee_type: GuaranteeType
    description: str = Field(..., min_length=1, max_length=500)
    estimated_value: Decimal = Field(..., gt=0)
    wants_to_sell: bool = False
    sale_price: Optional[Decimal] = Field(None, gt=0)
    details: str = Field("", max_length=500, description="Plate, model, year, registry number")


class GuaranteeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    guarantee_type: GuaranteeType
    description: str
    estimated_value: Decimal
    status: GuaranteeStatus
    created_at: datetime
    wants_to_sell: bool
    sale_price: Optional[Decimal]
    details: str


class DocumentCreate(BaseModel):
    """Request body for POST /v1/users/{user_id}/documents"""

    document_type: DocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    url: str = Field("", description="Location of the file in object storage")


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    document_type: DocumentType
    file_name: str
    status: DocumentStatus
    submitted_at: datetime
    url: str


class ReferralCreate(BaseModel):
    """Request body for POST /v1/users/{user_id}/referrals"""

    referred_name: str = Field(..., min_length=1)
    referred_email: EmailStr


class ReferralResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    referred_name: str
    referred_email: str
    status: ReferralStatus
    referred_at: datetime


class OfferCreate(BaseModel):
    """Request body for POST /v1/offers"""

    lender_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Principal offered")
    monthly_rate_percent: Decimal = Field(..., description="Monthly interest rate, e.g. 2.5 for 2.5%")
    term_months: int = Field(..., description="Number of monthly installments")
    description: str = Field("", max_length=500)


class OfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lender_id: str
    amount: Decimal
    monthly_rate_percent: Decimal
    term_months: int
    description: str
    created_at: datetime
    monthly_payment: Decimal
    total_amount: Decimal

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferResponse":
        """Offer plus the installment a borrower would pay for the full amount"""
        payment = installment(offer.amount, offer.monthly_rate_percent, offer.term_months)
        return cls(
            id=offer.id,
            lender_id=offer.lender_id,
            amount=offer.amount,
            monthly_rate_percent=offer.monthly_rate_percent,
            term_months=offer.term_months,
            description=offer.description,
            created_at=offer.created_at,
            monthly_payment=payment,
            total_amount=total_amount(payment, offer.term_months),
        )


class LoanRequestCreate(BaseModel):
    """Request body for POST /v1/requests"""

    offer_id: str = Field(..., min_length=1)
    borrower_id: str = Field(..., min_length=1)


class LoanRequestDecision(BaseModel):
    """Request body for approve/reject"""

    lender_id: str = Field(..., min_length=1)


class LoanRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    offer_id: str
    borrower_id: str
    amount_requested: Decimal
    status: RequestStatus
    request_date: datetime


class ContractResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    offer_id: str
    borrower_id: str
    lender_id: str
    principal: Decimal
    total_amount: Decimal
    monthly_payment: Decimal
    remaining_amount: Decimal
    term_months: int
    months_paid: int
    status: ContractStatus
    created_at: datetime
    next_payment_date: datetime


class ScheduleRowSchema(BaseModel):
    """Single month in an amortization schedule"""

    model_config = ConfigDict(from_attributes=True)

    month: int
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


class ContractDetailResponse(ContractResponse):
    """Response for GET /v1/contracts/{contract_id}"""

    schedule: List[ScheduleRowSchema]


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    cost_points: int
    category: RewardCategory


class RedeemRequest(BaseModel):
    """Request body for POST /v1/rewards/{reward_id}/redeem"""

    user_id: str = Field(..., min_length=1)


class RedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    reward_id: str
    redemption_date: datetime
    code: str


class ErrorResponse(BaseModel):
    """Body returned for every LendingError and for request validation failures"""

    detail: Union[str, List[Dict[str, Any]]] = Field(..., description="User-facing reason, or field errors")
    kind: Optional[str] = Field(None, description="VALIDATION, AUTH, NETWORK or SERVER")
