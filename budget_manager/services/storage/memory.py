"""
In-Memory Storage Implementation

Used for tests and for running without a configured backend.
Entities are deep-copied on the way in and out, so callers never hold a
reference to stored state.
"""

from typing import Optional
from uuid import UUID

from budget_manager.models.entities import utcnow
from budget_manager.services.storage.interface import (
    DuplicateError,
    EntityStore,
    EntityT,
    NotFoundError,
    Predicate,
)


class InMemoryEntityStore(EntityStore[EntityT]):
    """Dictionary-backed store keyed by (owner_id, id)."""

    def __init__(self, entity_name: str = "entity"):
        self._entity_name = entity_name
        self._items: dict[tuple[str, UUID], EntityT] = {}

    async def get_by_id(self, entity_id: UUID, owner_id: str) -> Optional[EntityT]:
        entity = self._items.get((owner_id, entity_id))
        return entity.model_copy(deep=True) if entity is not None else None

    async def create(self, entity: EntityT) -> EntityT:
        key = (entity.owner_id, entity.id)
        if key in self._items:
            raise DuplicateError(f"{self._entity_name} already exists: {entity.id}")

        now = utcnow()
        stored = entity.model_copy(deep=True, update={"created_at": now, "updated_at": now})
        self._items[key] = stored
        return stored.model_copy(deep=True)

    async def update(self, entity: EntityT) -> EntityT:
        key = (entity.owner_id, entity.id)
        if key not in self._items:
            raise NotFoundError(f"{self._entity_name} not found: {entity.id}")

        stored = entity.model_copy(deep=True, update={"updated_at": utcnow()})
        self._items[key] = stored
        return stored.model_copy(deep=True)

    async def delete(self, entity_id: UUID, owner_id: str) -> bool:
        return self._items.pop((owner_id, entity_id), None) is not None

    async def query(
        self,
        owner_id: str,
        predicate: Optional[Predicate] = None,
    ) -> list[EntityT]:
        return [
            entity.model_copy(deep=True)
            for (owner, _), entity in self._items.items()
            if owner == owner_id and (predicate is None or predicate(entity))
        ]

    def __len__(self) -> int:
        return len(self._items)
