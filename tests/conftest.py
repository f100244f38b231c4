"""Pytest fixtures for testing"""

import pytest
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from lending_gateway.api.main import create_app
from lending_gateway.domain.documents import DocumentService
from lending_gateway.domain.guarantees import GuaranteeService
from lending_gateway.domain.ledger import PointsLedger, seed_rewards
from lending_gateway.domain.lifecycle import LoanLifecycle
from lending_gateway.domain.models import Offer, OfferDraft, User
from lending_gateway.domain.profiles import ProfileService
from lending_gateway.domain.referrals import ReferralService
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.infrastructure.database.repositories import SqlGateway
from lending_gateway.infrastructure.database.session import build_engine, build_session_factory, create_schema
from lending_gateway.infrastructure.memory.store import InMemoryGateway


FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingSleep:
    """Async sleep replacement that records requested delays instead of waiting"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyGateway:
    """
    Wraps a gateway and injects failures.

    `fail_on` maps a (method, entity type name) pair to the exception raised on
    every matching call; `lost_commits` makes that many units of work commit
    and then raise as if the response never arrived.
    """

    def __init__(self, inner):
        self.inner = inner
        self.fail_on = {}
        self.lost_commits = 0
        self.calls = []

    def _maybe_fail(self, method: str, entity_type: type) -> None:
        self.calls.append((method, entity_type.__name__))
        error = self.fail_on.get((method, entity_type.__name__))
        if error is not None:
            raise error

    async def get(self, entity_type, record_id):
        self._maybe_fail("get", entity_type)
        return await self.inner.get(entity_type, record_id)

    async def list(self, entity_type, **filters):
        self._maybe_fail("list", entity_type)
        return await self.inner.list(entity_type, **filters)

    async def insert(self, entity):
        self._maybe_fail("insert", type(entity))
        return await self.inner.insert(entity)

    async def update(self, entity_type, record_id, changes, expected=None):
        self._maybe_fail("update", entity_type)
        return await self.inner.update(entity_type, record_id, changes, expected=expected)

    @asynccontextmanager
    async def transaction(self):
        async with self.inner.transaction():
            yield
        if self.lost_commits > 0:
            self.lost_commits -= 1
            raise ConnectionError("connection reset after commit")


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def flaky_gateway(gateway: InMemoryGateway) -> FlakyGateway:
    return FlakyGateway(gateway)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def executor(sleep: RecordingSleep) -> ResilientExecutor:
    """Default retry policy without wall-clock delays"""
    return ResilientExecutor(sleep=sleep)


@pytest.fixture
def lifecycle(gateway, executor, clock) -> LoanLifecycle:
    return LoanLifecycle(gateway, executor, clock=clock)


@pytest.fixture
def ledger(gateway, executor, clock) -> PointsLedger:
    return PointsLedger(gateway, executor, clock=clock)


@pytest.fixture
def profiles(gateway, executor, ledger, clock) -> ProfileService:
    return ProfileService(gateway, executor, ledger, clock=clock)


@pytest.fixture
def guarantees(gateway, executor, ledger, clock) -> GuaranteeService:
    return GuaranteeService(gateway, executor, ledger, clock=clock)


@pytest.fixture
def documents(gateway, executor, clock) -> DocumentService:
    return DocumentService(gateway, executor, clock=clock)


@pytest.fixture
def referrals(gateway, executor, clock) -> ReferralService:
    return ReferralService(gateway, executor, clock=clock)


def make_user(user_id: str, points: int = 0, level: int = 1, tax_id: str = "") -> User:
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        full_name=f"User {user_id}",
        created_at=FIXED_NOW,
        tax_id=tax_id,
        points=points,
        level=level,
    )


@pytest.fixture
def add_user(gateway: InMemoryGateway):
    """Insert a user directly, bypassing registration"""

    async def _add(user_id: str, points: int = 0, level: int = 1, tax_id: str = "") -> User:
        return await gateway.insert(make_user(user_id, points=points, level=level, tax_id=tax_id))

    return _add


@pytest.fixture
async def lender(gateway: InMemoryGateway) -> User:
    """Level-2 lender allowed to publish offers up to 50,000"""
    return await gateway.insert(make_user("lender", points=500, level=2))


@pytest.fixture
async def borrower(gateway: InMemoryGateway) -> User:
    """Borrower with an identity document on file"""
    return await gateway.insert(make_user("borrower", tax_id="12345678901"))


@pytest.fixture
async def offer(lifecycle: LoanLifecycle, lender: User) -> Offer:
    draft = OfferDraft(
        lender_id=lender.id,
        amount=Decimal("1000"),
        monthly_rate_percent=Decimal("2"),
        term_months=12,
        description="Working capital",
    )
    return await lifecycle.create_offer(draft, lender_level=lender.level)


@pytest.fixture
async def rewards_seeded(gateway: InMemoryGateway) -> int:
    return await seed_rewards(gateway)


@pytest.fixture
def sql_gateway() -> Generator[SqlGateway, None, None]:
    """SQL gateway over a private in-memory SQLite database"""
    engine = build_engine("sqlite://")
    create_schema(engine)
    try:
        yield SqlGateway(build_session_factory(engine))
    finally:
        engine.dispose()


@pytest.fixture
def client(gateway: InMemoryGateway, executor: ResilientExecutor) -> Generator[TestClient, None, None]:
    """FastAPI test client over the in-memory gateway; startup seeds the rewards catalogue"""
    app = create_app(gateway=gateway, executor=executor)
    with TestClient(app) as test_client:
        yield test_client
