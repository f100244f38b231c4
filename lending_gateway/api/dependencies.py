"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from lending_gateway.config import settings
from lending_gateway.domain.documents import DocumentService
from lending_gateway.domain.guarantees import GuaranteeService
from lending_gateway.domain.ledger import PointsLedger
from lending_gateway.domain.lifecycle import LoanLifecycle
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.domain.referrals import ReferralService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_lifecycle(request: Request) -> LoanLifecycle:
    """Loan lifecycle bound to the application's gateway and retry policy"""
    return LoanLifecycle(
        request.app.state.gateway,
        request.app.state.executor,
        next_payment_interval_days=settings.next_payment_interval_days,
    )


def get_ledger(request: Request) -> PointsLedger:
    return PointsLedger(
        request.app.state.gateway,
        request.app.state.executor,
        points_per_level=settings.points_per_level,
    )


def get_profiles(request: Request) -> ProfileService:
    return ProfileService(request.app.state.gateway, request.app.state.executor, get_ledger(request))


def get_guarantees(request: Request) -> GuaranteeService:
    return GuaranteeService(request.app.state.gateway, request.app.state.executor, get_ledger(request))


def get_documents(request: Request) -> DocumentService:
    return DocumentService(request.app.state.gateway, request.app.state.executor)


def get_referrals(request: Request) -> ReferralService:
    return ReferralService(request.app.state.gateway, request.app.state.executor)
