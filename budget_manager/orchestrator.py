"""
Application Wiring for Budget Manager

This module ties together all the components:
1. Entity stores (in-memory or Google Sheets)
2. Validation + balance synchronization → transaction lifecycle
3. Budget projection over the same stores

DESIGN DECISION: Mutations and reads share the stores but nothing else.
The lifecycle manager is the only writer; the projection engine only reads.
"""

from typing import Optional

import structlog

from budget_manager.config import get_settings
from budget_manager.logger import configure_logging
from budget_manager.queries import BudgetProjectionEngine
from budget_manager.services.balance import AccountBalanceService
from budget_manager.services.storage import EntityStores, GoogleSheetsClient
from budget_manager.transactions import TransactionLifecycleManager
from budget_manager.validation import TransactionValidator


logger = structlog.get_logger(__name__)


def build_stores(use_storage: bool = True) -> EntityStores:
    """
    Pick the entity store implementation.

    Google Sheets is used only when requested by settings and configured.
    Anything else falls back to in-memory stores.
    """
    backend = get_settings().app.storage_backend

    if use_storage and backend == "google_sheets":
        try:
            return EntityStores.google_sheets(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend=backend, error=str(e))

    logger.info("using_in_memory_storage")
    return EntityStores.in_memory()


def create_app_components(
    use_storage: bool = True,
    stores: Optional[EntityStores] = None,
) -> tuple[TransactionLifecycleManager, BudgetProjectionEngine, EntityStores]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize the configured storage backend.
                    Set to False for testing without storage.
        stores: Prebuilt stores; skips backend selection entirely.

    Returns:
        (transaction_manager, projection_engine, stores)
    """
    configure_logging()

    stores = stores or build_stores(use_storage)

    validator = TransactionValidator(stores.accounts)
    balance_service = AccountBalanceService(stores.accounts)

    transaction_manager = TransactionLifecycleManager(
        transaction_store=stores.transactions,
        validator=validator,
        balance_service=balance_service,
    )
    projection_engine = BudgetProjectionEngine(stores)

    return transaction_manager, projection_engine, stores
