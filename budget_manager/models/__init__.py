"""
Data Models Package

This package contains all Pydantic models used in the Budget Manager system.
All data flowing through the system must conform to these schemas.
"""

from budget_manager.models.entities import (
    Account,
    AccountType,
    OwnedEntity,
    PlannedExpense,
    RecurringItem,
    RecurringItemType,
    SavingGoal,
    Transaction,
    TransactionType,
    utcnow,
    year_month_key,
)
from budget_manager.models.commands import (
    TransactionCreate,
    TransactionUpdate,
)
from budget_manager.models.budget import (
    BudgetPeriod,
    BudgetSection,
    BudgetSectionItem,
    CalendarView,
    DashboardBalance,
    DashboardView,
    IncomeAfterFixedExpenses,
    OtherExpensesView,
    PlannedExpensesView,
    PlannedExpenseView,
    ProjectedBalance,
)

__all__ = [
    # Entities
    "Account",
    "AccountType",
    "OwnedEntity",
    "PlannedExpense",
    "RecurringItem",
    "RecurringItemType",
    "SavingGoal",
    "Transaction",
    "TransactionType",
    "utcnow",
    "year_month_key",
    # Commands
    "TransactionCreate",
    "TransactionUpdate",
    # Budget views
    "BudgetPeriod",
    "BudgetSection",
    "BudgetSectionItem",
    "CalendarView",
    "DashboardBalance",
    "DashboardView",
    "IncomeAfterFixedExpenses",
    "OtherExpensesView",
    "PlannedExpensesView",
    "PlannedExpenseView",
    "ProjectedBalance",
]
