"""
Entity Store Bundle

Groups the per-entity stores the core needs, so components receive one
object instead of five.
"""

from dataclasses import dataclass
from typing import Optional

from budget_manager.models.entities import (
    Account,
    PlannedExpense,
    RecurringItem,
    SavingGoal,
    Transaction,
)
from budget_manager.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
)
from budget_manager.services.storage.interface import EntityStore
from budget_manager.services.storage.memory import InMemoryEntityStore


@dataclass(frozen=True)
class EntityStores:
    """One store per entity type."""

    accounts: EntityStore[Account]
    transactions: EntityStore[Transaction]
    recurring_items: EntityStore[RecurringItem]
    saving_goals: EntityStore[SavingGoal]
    planned_expenses: EntityStore[PlannedExpense]

    @classmethod
    def in_memory(cls) -> "EntityStores":
        return cls(
            accounts=InMemoryEntityStore("Account"),
            transactions=InMemoryEntityStore("Transaction"),
            recurring_items=InMemoryEntityStore("RecurringItem"),
            saving_goals=InMemoryEntityStore("SavingGoal"),
            planned_expenses=InMemoryEntityStore("PlannedExpense"),
        )

    @classmethod
    def google_sheets(cls, client: Optional[GoogleSheetsClient] = None) -> "EntityStores":
        client = client or GoogleSheetsClient()
        settings = client.settings
        return cls(
            accounts=GoogleSheetsEntityStore(
                Account, settings.accounts_sheet_name, client
            ),
            transactions=GoogleSheetsEntityStore(
                Transaction, settings.transactions_sheet_name, client
            ),
            recurring_items=GoogleSheetsEntityStore(
                RecurringItem, settings.recurring_items_sheet_name, client
            ),
            saving_goals=GoogleSheetsEntityStore(
                SavingGoal, settings.saving_goals_sheet_name, client
            ),
            planned_expenses=GoogleSheetsEntityStore(
                PlannedExpense, settings.planned_expenses_sheet_name, client
            ),
        )
