"""Domain models - immutable dataclasses representing marketplace entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ContractStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID = "PAID"


class RewardCategory(str, Enum):
    DISCOUNT = "DISCOUNT"
    CASHBACK = "CASHBACK"
    CONSULTING = "CONSULTING"
    PREMIUM = "PREMIUM"


class GuaranteeType(str, Enum):
    VEHICLE = "VEHICLE"
    PROPERTY = "PROPERTY"
    OTHER = "OTHER"


class GuaranteeStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class DocumentType(str, Enum):
    IDENTITY = "IDENTITY"
    PROOF_OF_INCOME = "PROOF_OF_INCOME"
    PROOF_OF_ADDRESS = "PROOF_OF_ADDRESS"
    BANK_STATEMENT = "BANK_STATEMENT"
    OTHER = "OTHER"


class DocumentStatus(str, Enum):
    PENDING = "PENDING"
    ANALYSIS = "ANALYSIS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReferralStatus(str, Enum):
    SENT = "SENT"
    REGISTERED = "REGISTERED"
    CONVERTED = "CONVERTED"


@dataclass(frozen=True)
class User:
    """Marketplace participant; points and level are owned by the points ledger"""

    id: str
    email: str
    full_name: str
    created_at: datetime
    tax_id: str = ""  # CPF/CNPJ, required before requesting a loan
    phone: str = ""
    points: int = 0
    level: int = 1


@dataclass(frozen=True)
class OfferDraft:
    """Lender input for a new offer, before validation"""

    lender_id: str
    amount: Decimal
    monthly_rate_percent: Decimal
    term_months: int
    description: str = ""


@dataclass(frozen=True)
class Offer:
    """Published willingness to lend; never mutated once stored"""

    id: str
    lender_id: str
    amount: Decimal
    monthly_rate_percent: Decimal
    term_months: int
    description: str
    created_at: datetime


@dataclass(frozen=True)
class LoanRequest:
    """Borrower application against exactly one offer"""

    id: str
    offer_id: str
    borrower_id: str
    amount_requested: Decimal
    status: RequestStatus
    request_date: datetime


@dataclass(frozen=True)
class Contract:
    """Binding agreement created when a request is approved"""

    id: str
    offer_id: str
    borrower_id: str
    lender_id: str
    principal: Decimal  # amount borrowed; schedules are rebuilt from it
    total_amount: Decimal
    monthly_payment: Decimal
    remaining_amount: Decimal
    term_months: int
    months_paid: int
    status: ContractStatus
    created_at: datetime
    next_payment_date: datetime

    def __post_init__(self):
        if self.remaining_amount > self.total_amount:
            raise ValueError("remaining_amount cannot exceed total_amount")
        if not 0 <= self.months_paid <= self.term_months:
            raise ValueError("months_paid must be between 0 and term_months")


@dataclass(frozen=True)
class Reward:
    """Catalogue item that can be bought with points"""

    id: str
    title: str
    cost_points: int
    category: RewardCategory
    description: str = ""


@dataclass(frozen=True)
class RewardRedemption:
    """Proof that a reward was paid for with points"""

    id: str
    user_id: str
    reward_id: str
    redemption_date: datetime
    code: str


@dataclass(frozen=True)
class Address:
    """Postal address; each user has at most one"""

    id: str
    user_id: str
    postal_code: str  # CEP, 8 digits
    street: str
    number: str
    district: str
    city: str
    state: str  # two-letter UF
    complement: str = ""


@dataclass(frozen=True)
class Guarantee:
    """Asset pledged by a user, pending verification"""

    id: str
    user_id: str
    guarantee_type: GuaranteeType
    description: str
    estimated_value: Decimal
    status: GuaranteeStatus
    created_at: datetime
    wants_to_sell: bool = False
    sale_price: Optional[Decimal] = None
    details: str = ""  # plate, model, registry number and similar


@dataclass(frozen=True)
class Document:
    """Metadata for a file submitted for identity or income checks"""

    id: str
    user_id: str
    document_type: DocumentType
    file_name: str
    status: DocumentStatus
    submitted_at: datetime
    url: str = ""


@dataclass(frozen=True)
class Referral:
    """Invitation sent by a user to someone not yet on the platform"""

    id: str
    user_id: str
    referred_name: str
    referred_email: str
    status: ReferralStatus
    referred_at: datetime


@dataclass(frozen=True)
class OfferValidation:
    """Outcome of the offer eligibility rules"""

    is_valid: bool
    rule: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ScheduleRow:
    """Single month of a constant-payment amortization schedule"""

    month: int
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


