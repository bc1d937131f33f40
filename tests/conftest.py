"""Shared fixtures for the budget manager tests."""

from datetime import date
from decimal import Decimal

import pytest

from budget_manager.config import AppSettings
from budget_manager.models import Account
from budget_manager.queries import BudgetProjectionEngine
from budget_manager.services.balance import AccountBalanceService
from budget_manager.services.storage import EntityStores
from budget_manager.transactions import TransactionLifecycleManager
from budget_manager.validation import TransactionValidator


OWNER = "user-1"
TODAY = date(2024, 3, 15)


async def add_account(
    stores: EntityStores,
    name: str,
    balance: str = "0",
    owner_id: str = OWNER,
    **fields,
) -> Account:
    """Persist an account directly, bypassing the lifecycle."""
    return await stores.accounts.create(
        Account(owner_id=owner_id, name=name, current_balance=Decimal(balance), **fields)
    )


async def balance_of(stores: EntityStores, account: Account, owner_id: str = OWNER) -> Decimal:
    stored = await stores.accounts.get_by_id(account.id, owner_id)
    return stored.current_balance


@pytest.fixture
def stores() -> EntityStores:
    return EntityStores.in_memory()


@pytest.fixture
def validator(stores) -> TransactionValidator:
    return TransactionValidator(stores.accounts)


@pytest.fixture
def balance_service(stores) -> AccountBalanceService:
    return AccountBalanceService(stores.accounts)


@pytest.fixture
def manager(stores, validator, balance_service) -> TransactionLifecycleManager:
    return TransactionLifecycleManager(stores.transactions, validator, balance_service)


@pytest.fixture
def engine(stores) -> BudgetProjectionEngine:
    return BudgetProjectionEngine(
        stores,
        today_provider=lambda: TODAY,
        settings=AppSettings(recent_transactions_limit=5),
    )
