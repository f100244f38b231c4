"""SQLAlchemy-backed persistence gateway"""

import contextvars
from contextlib import asynccontextmanager, contextmanager
from dataclasses import fields
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, Type, TypeVar

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, sessionmaker

from lending_gateway.domain.exceptions import ErrorKind, LendingError
from lending_gateway.domain.models import (
    Address,
    Contract,
    Document,
    Guarantee,
    LoanRequest,
    Offer,
    Referral,
    Reward,
    RewardRedemption,
    User,
)
from lending_gateway.infrastructure.database.models import (
    AddressRecord,
    ContractRecord,
    DocumentRecord,
    GuaranteeRecord,
    LoanRequestRecord,
    OfferRecord,
    ReferralRecord,
    RewardRecord,
    RewardRedemptionRecord,
    UserRecord,
)
from lending_gateway.utils.date_utils import ensure_utc

E = TypeVar("E")

ENTITY_RECORDS = {
    User: UserRecord,
    Offer: OfferRecord,
    LoanRequest: LoanRequestRecord,
    Contract: ContractRecord,
    Reward: RewardRecord,
    RewardRedemption: RewardRedemptionRecord,
    Address: AddressRecord,
    Guarantee: GuaranteeRecord,
    Document: DocumentRecord,
    Referral: ReferralRecord,
}

_MEMBERSHIP_TYPES = (list, tuple, set, frozenset)

# (gateway, session) of the unit of work running in the current task
_active_unit: contextvars.ContextVar = contextvars.ContextVar("active_sql_unit", default=None)


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as taxonomy errors"""
    try:
        yield
    except LendingError:
        raise
    except (OperationalError, DisconnectionError, PoolTimeoutError) as e:
        raise LendingError("Database unavailable", ErrorKind.NETWORK, details={"action": action}) from e
    except IntegrityError as e:
        raise LendingError(
            "Database constraint violated",
            ErrorKind.SERVER,
            retryable=False,
            details={"action": action},
        ) from e
    except SQLAlchemyError as e:
        raise LendingError("Database error", ErrorKind.SERVER, details={"action": action}) from e


def _record_class(entity_type: type):
    try:
        return ENTITY_RECORDS[entity_type]
    except KeyError:
        raise LendingError(
            f"No table mapped for {entity_type.__name__}",
            ErrorKind.SERVER,
            retryable=False,
        ) from None


def _column(record_cls, name: str):
    column = getattr(record_cls, name, None)
    if column is None:
        raise LendingError(
            f"Unknown field {name} for {record_cls.__tablename__}",
            ErrorKind.SERVER,
            retryable=False,
        )
    return column


def _to_record(entity: Any):
    record_cls = _record_class(type(entity))
    return record_cls(**{f.name: getattr(entity, f.name) for f in fields(entity)})


def _to_entity(entity_type: Type[E], row: Any) -> E:
    values = {}
    for f in fields(entity_type):
        value = getattr(row, f.name)
        if isinstance(value, datetime):
            value = ensure_utc(value)
        values[f.name] = value
    return entity_type(**values)


class SqlGateway:
    """
    Persistence gateway over a relational database.

    Calls outside a unit of work run in their own short-lived session and
    commit immediately. Inside `transaction()` every call shares one session
    that commits on exit or rolls back on error.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        active = _active_unit.get()
        if active is not None and active[0] is self:
            yield active[1]
            return

        db = self.session_factory()
        try:
            yield db
            db.commit()
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()

    async def get(self, entity_type: Type[E], record_id: str) -> Optional[E]:
        record_cls = _record_class(entity_type)
        with translate_errors("get"), self._session() as db:
            row = db.get(record_cls, record_id)
            return _to_entity(entity_type, row) if row is not None else None

    async def list(self, entity_type: Type[E], **filters: Any) -> List[E]:
        record_cls = _record_class(entity_type)
        conditions = []
        for name, wanted in filters.items():
            column = _column(record_cls, name)
            if isinstance(wanted, _MEMBERSHIP_TYPES):
                conditions.append(column.in_(list(wanted)))
            else:
                conditions.append(column == wanted)

        with translate_errors("list"), self._session() as db:
            rows = db.query(record_cls).filter(*conditions).all()
            return [_to_entity(entity_type, row) for row in rows]

    async def insert(self, entity: E) -> E:
        record = _to_record(entity)
        with translate_errors("insert"), self._session() as db:
            db.add(record)
            db.flush()
        return entity

    async def update(
        self,
        entity_type: Type[E],
        record_id: str,
        changes: Dict[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[E]:
        """Conditional UPDATE; the row count tells whether `expected` still held"""
        record_cls = _record_class(entity_type)
        for name in changes:
            _column(record_cls, name)

        with translate_errors("update"), self._session() as db:
            query = db.query(record_cls).filter(record_cls.id == record_id)
            for name, value in (expected or {}).items():
                query = query.filter(_column(record_cls, name) == value)

            if query.update(changes, synchronize_session=False) == 0:
                return None

            row = db.get(record_cls, record_id, populate_existing=True)
            return _to_entity(entity_type, row)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        active = _active_unit.get()
        if active is not None and active[0] is self:
            yield
            return

        db = self.session_factory()
        token = _active_unit.set((self, db))
        try:
            yield
            with translate_errors("commit"):
                db.commit()
        except BaseException:
            db.rollback()
            raise
        finally:
            _active_unit.reset(token)
            db.close()
