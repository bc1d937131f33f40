"""Transaction lifecycle package."""

from budget_manager.transactions.lifecycle import TransactionLifecycleManager

__all__ = ["TransactionLifecycleManager"]
