"""Budget queries package."""

from budget_manager.queries.projection import BudgetProjectionEngine

__all__ = ["BudgetProjectionEngine"]
