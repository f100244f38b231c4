"""In-process persistence gateway backed by dictionaries"""

import asyncio
import contextvars
import dataclasses
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Type, TypeVar

from lending_gateway.domain.exceptions import ErrorKind, LendingError

E = TypeVar("E")

_MEMBERSHIP_TYPES = (list, tuple, set, frozenset)

_active_store: contextvars.ContextVar = contextvars.ContextVar("active_memory_store", default=None)


def _matches(entity: Any, filters: Mapping[str, Any]) -> bool:
    for name, wanted in filters.items():
        value = getattr(entity, name)
        if isinstance(wanted, _MEMBERSHIP_TYPES):
            if value not in wanted:
                return False
        elif value != wanted:
            return False
    return True


class InMemoryGateway:
    """
    Local store for development and tests.

    Entities are frozen dataclasses, so a table snapshot is a shallow copy of
    its dict. `transaction()` takes that snapshot, serializes concurrent units
    of work with an asyncio.Lock, and restores the snapshot on error.
    """

    def __init__(self):
        self._tables: Dict[type, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def _table(self, entity_type: type) -> Dict[str, Any]:
        return self._tables.setdefault(entity_type, {})

    @staticmethod
    def _check_fields(entity_type: type, names) -> None:
        known = {f.name for f in dataclasses.fields(entity_type)}
        unknown = set(names) - known
        if unknown:
            raise LendingError(
                f"Unknown fields for {entity_type.__name__}: {', '.join(sorted(unknown))}",
                ErrorKind.SERVER,
                retryable=False,
            )

    async def get(self, entity_type: Type[E], record_id: str) -> Optional[E]:
        return self._table(entity_type).get(record_id)

    async def list(self, entity_type: Type[E], **filters: Any) -> List[E]:
        self._check_fields(entity_type, filters)
        return [e for e in self._table(entity_type).values() if _matches(e, filters)]

    async def insert(self, entity: E) -> E:
        table = self._table(type(entity))
        if entity.id in table:
            raise LendingError(
                f"Duplicate {type(entity).__name__} id {entity.id}",
                ErrorKind.SERVER,
                retryable=False,
            )
        table[entity.id] = entity
        return entity

    async def update(
        self,
        entity_type: Type[E],
        record_id: str,
        changes: Dict[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[E]:
        self._check_fields(entity_type, changes)
        table = self._table(entity_type)
        current = table.get(record_id)
        if current is None:
            return None
        if expected and not _matches(current, expected):
            return None

        updated = dataclasses.replace(current, **changes)
        table[record_id] = updated
        return updated

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if _active_store.get() is self:
            # Nested units join the outer one
            yield
            return

        async with self._lock:
            snapshot = {t: dict(rows) for t, rows in self._tables.items()}
            token = _active_store.set(self)
            try:
                yield
            except BaseException:
                self._tables = snapshot
                raise
            finally:
                _active_store.reset(token)

    def count(self, entity_type: type) -> int:
        return len(self._table(entity_type))
