"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Per-entity CRUD keyed by (id, owner_id) plus a filtered listing.
There are no joins and no multi-entity transactions.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional, TypeVar
from uuid import UUID

from budget_manager.models.entities import OwnedEntity


EntityT = TypeVar("EntityT", bound=OwnedEntity)

Predicate = Callable[[EntityT], bool]


class EntityStore(ABC, Generic[EntityT]):
    """
    Abstract interface for one entity type's storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get_by_id(self, entity_id: UUID, owner_id: str) -> Optional[EntityT]:
        """
        Retrieve an entity by its ID.

        Args:
            entity_id: The entity's unique identifier
            owner_id: The owning user; entities of other users are invisible

        Returns:
            The entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, entity: EntityT) -> EntityT:
        """
        Persist a new entity.

        The store stamps created_at and updated_at.

        Raises:
            DuplicateError: If an entity with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update(self, entity: EntityT) -> EntityT:
        """
        Replace an existing entity.

        The store refreshes updated_at; created_at is kept as given.

        Raises:
            NotFoundError: If the entity doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete(self, entity_id: UUID, owner_id: str) -> bool:
        """
        Delete an entity by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def query(
        self,
        owner_id: str,
        predicate: Optional[Predicate] = None,
    ) -> list[EntityT]:
        """
        List an owner's entities, optionally filtered.

        Args:
            owner_id: The owning user
            predicate: Keep only entities for which this returns True

        Returns:
            Matching entities (no particular order)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class AccountNotFoundError(NotFoundError):
    """Referenced account does not exist for this owner."""

    def __init__(self, account_id: UUID, message: Optional[str] = None):
        self.account_id = account_id
        super().__init__(message or f"Account {account_id} not found")


class TransactionNotFoundError(NotFoundError):
    """Transaction does not exist for this owner."""

    def __init__(self, transaction_id: UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
