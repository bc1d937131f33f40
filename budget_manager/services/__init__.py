"""Services package."""

from budget_manager.services.balance import (
    AccountBalanceService,
    BalanceConfigurationError,
    should_apply_balance,
)
from budget_manager.services.storage import (
    AccountNotFoundError,
    ConnectionError,
    DuplicateError,
    EntityStore,
    EntityStores,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    NotFoundError,
    StorageError,
    TransactionNotFoundError,
)

__all__ = [
    # Balance services
    "AccountBalanceService",
    "BalanceConfigurationError",
    "should_apply_balance",
    # Storage services
    "AccountNotFoundError",
    "ConnectionError",
    "DuplicateError",
    "EntityStore",
    "EntityStores",
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
    "NotFoundError",
    "StorageError",
    "TransactionNotFoundError",
]
