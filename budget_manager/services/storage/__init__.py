"""
Storage Services Package

Provides the abstract entity store interface and concrete implementations.
In-memory storage for tests and local runs, Google Sheets as the hosted
backend; business logic only sees the interface.
"""

from budget_manager.services.storage.interface import (
    AccountNotFoundError,
    ConnectionError,
    DuplicateError,
    EntityStore,
    NotFoundError,
    StorageError,
    TransactionNotFoundError,
)
from budget_manager.services.storage.memory import InMemoryEntityStore
from budget_manager.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
)
from budget_manager.services.storage.stores import EntityStores

__all__ = [
    # Interfaces
    "EntityStore",
    "EntityStores",
    # Exceptions
    "AccountNotFoundError",
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "TransactionNotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
]
