"""SQLAlchemy ORM models for marketplace entities"""

from decimal import Decimal
from sqlalchemy import Boolean, Column, String, Integer, DateTime, Text, Enum, ForeignKey
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from lending_gateway.domain.models import (
    ContractStatus,
    DocumentStatus,
    DocumentType,
    GuaranteeStatus,
    GuaranteeType,
    ReferralStatus,
    RequestStatus,
    RewardCategory,
)

Base = declarative_base()


class DecimalText(TypeDecorator):
    """Stores Decimal as text so amounts round-trip exactly on every dialect"""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UserRecord(Base):
    """Marketplace user with points balance"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    full_name = Column(Text, nullable=False)
    tax_id = Column(Text, nullable=False, default="")
    phone = Column(Text, nullable=False, default="")
    points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False)


class OfferRecord(Base):
    """Published loan offer"""

    __tablename__ = "loan_offers"

    id = Column(String(36), primary_key=True)
    lender_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(DecimalText, nullable=False)
    monthly_rate_percent = Column(DecimalText, nullable=False)
    term_months = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)


class LoanRequestRecord(Base):
    """Borrower application against an offer"""

    __tablename__ = "loan_requests"

    id = Column(String(36), primary_key=True)
    offer_id = Column(String(36), ForeignKey("loan_offers.id"), nullable=False, index=True)
    borrower_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    amount_requested = Column(DecimalText, nullable=False)
    status = Column(Enum(RequestStatus, native_enum=False, length=16), nullable=False, index=True)
    request_date = Column(DateTime(timezone=True), nullable=False)


class ContractRecord(Base):
    """Contract created on approval"""

    __tablename__ = "loan_contracts"

    id = Column(String(36), primary_key=True)
    offer_id = Column(String(36), ForeignKey("loan_offers.id"), nullable=False)
    borrower_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    lender_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    principal = Column(DecimalText, nullable=False)
    total_amount = Column(DecimalText, nullable=False)
    monthly_payment = Column(DecimalText, nullable=False)
    remaining_amount = Column(DecimalText, nullable=False)
    term_months = Column(Integer, nullable=False)
    months_paid = Column(Integer, nullable=False, default=0)
    status = Column(Enum(ContractStatus, native_enum=False, length=16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    next_payment_date = Column(DateTime(timezone=True), nullable=False)


class RewardRecord(Base):
    """Rewards catalogue"""

    __tablename__ = "rewards"

    id = Column(String(64), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    cost_points = Column(Integer, nullable=False)
    category = Column(Enum(RewardCategory, native_enum=False, length=16), nullable=False)


class RewardRedemptionRecord(Base):
    """Points spent on a reward"""

    __tablename__ = "reward_redemptions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    reward_id = Column(String(64), ForeignKey("rewards.id"), nullable=False)
    redemption_date = Column(DateTime(timezone=True), nullable=False)
    code = Column(String(16), nullable=False, unique=True)


class AddressRecord(Base):
    """One postal address per user"""

    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    postal_code = Column(String(8), nullable=False)
    street = Column(Text, nullable=False)
    number = Column(String(16), nullable=False)
    complement = Column(Text, nullable=False, default="")
    district = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    state = Column(String(2), nullable=False)


class GuaranteeRecord(Base):
    """Collateral pledged by a user"""

    __tablename__ = "guarantees"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    guarantee_type = Column(Enum(GuaranteeType, native_enum=False, length=16), nullable=False)
    description = Column(Text, nullable=False)
    estimated_value = Column(DecimalText, nullable=False)
    status = Column(Enum(GuaranteeStatus, native_enum=False, length=16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    wants_to_sell = Column(Boolean, nullable=False, default=False)
    sale_price = Column(DecimalText, nullable=True)
    details = Column(Text, nullable=False, default="")


class DocumentRecord(Base):
    """Submitted document metadata"""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    document_type = Column(Enum(DocumentType, native_enum=False, length=32), nullable=False)
    file_name = Column(Text, nullable=False)
    status = Column(Enum(DocumentStatus, native_enum=False, length=16), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    url = Column(Text, nullable=False, default="")


class ReferralRecord(Base):
    """Invitation to a prospective user"""

    __tablename__ = "referrals"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    referred_name = Column(Text, nullable=False)
    referred_email = Column(Text, nullable=False, unique=True)
    status = Column(Enum(ReferralStatus, native_enum=False, length=16), nullable=False)
    referred_at = Column(DateTime(timezone=True), nullable=False)
