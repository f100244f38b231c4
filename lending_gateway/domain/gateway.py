"""Persistence gateway contract consumed by the domain services"""

from typing import Any, AsyncContextManager, Dict, List, Mapping, Optional, Protocol, Type, TypeVar

E = TypeVar("E")


class PersistenceGateway(Protocol):
    """
    Record-level storage keyed by entity id.

    Filters passed to `list` are equality checks, or membership checks when the
    value is a list, tuple or set. `update` returns None when the record is
    missing or when any field in `expected` does not match the stored value,
    which is how callers express conditional (compare-and-set) writes.

    Backend failures are raised as LendingError with a taxonomy kind.
    """

    async def get(self, entity_type: Type[E], record_id: str) -> Optional[E]:
        ...

    async def list(self, entity_type: Type[E], **filters: Any) -> List[E]:
        ...

    async def insert(self, entity: E) -> E:
        ...

    async def update(
        self,
        entity_type: Type[E],
        record_id: str,
        changes: Dict[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[E]:
        ...

    def transaction(self) -> AsyncContextManager[None]:
        """Unit of work: commit on success, roll every write back on error"""
        ...


async def insert_once(gateway: PersistenceGateway, entity: E) -> E:
    """
    Insert `entity` unless a record with its id is already stored.

    Ids are generated before the first attempt, so replaying this after a
    commit whose acknowledgement was lost returns the stored record instead of
    failing on a duplicate key.
    """
    async with gateway.transaction():
        existing = await gateway.get(type(entity), entity.id)
        if existing is not None:
            return existing
        return await gateway.insert(entity)
