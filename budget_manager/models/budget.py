"""
Budget View Models

Read models returned by the projection engine. Nothing here is persisted.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from budget_manager.models.entities import (
    PlannedExpense,
    RecurringItemType,
    Transaction,
    year_month_key,
)


class BudgetPeriod(BaseModel):
    """A calendar month the budget is computed for."""

    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)

    @property
    def year_month(self) -> str:
        return year_month_key(self.year, self.month)

    @classmethod
    def from_date(cls, value: date) -> 'BudgetPeriod':
        return cls(year=value.year, month=value.month)

    def is_before(self, other: 'BudgetPeriod') -> bool:
        return (self.year, self.month) < (other.year, other.month)


class BudgetSectionItem(BaseModel):
    """
    One line of a budget section.

    Built from a recurring item, a savings goal or a plain transaction.
    `amount` is the linked transaction's amount when applied, otherwise the
    template's default.
    """

    id: UUID
    owner_id: str
    amount: Decimal
    is_applied: bool
    transaction_id: Optional[UUID] = None
    name: Optional[str] = None
    notes: Optional[str] = None
    day_of_month: Optional[int] = None
    icon: Optional[str] = None
    color: Optional[str] = None

    # Recurring item specific
    item_type: Optional[RecurringItemType] = None
    account_id: Optional[UUID] = None
    account_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    subcategory: Optional[str] = None

    # Saving specific
    goal_amount: Optional[Decimal] = None
    saved_amount: Optional[Decimal] = None
    amount_per_month: Optional[Decimal] = None

    created_at: datetime
    updated_at: datetime
    source: str = Field(
        ...,
        pattern="^(monthly_transaction|saving|transaction)$",
        description="Which aggregate this line was built from"
    )


class BudgetSection(BaseModel):
    """A titled list of items with their total."""

    total: Decimal = Decimal("0")
    items: list[BudgetSectionItem] = Field(default_factory=list)


class IncomeAfterFixedExpenses(BaseModel):
    """
    Income left once fixed monthly obligations and savings are covered.

    total = monthly incomes + ad-hoc incomes - monthly expenses - savings
    """

    period: BudgetPeriod
    total: Decimal = Decimal("0")
    monthly_incomes: BudgetSection = Field(default_factory=BudgetSection)
    monthly_expenses: BudgetSection = Field(default_factory=BudgetSection)
    savings: BudgetSection = Field(default_factory=BudgetSection)
    incomes: BudgetSection = Field(default_factory=BudgetSection)


class PlannedExpenseView(BaseModel):
    """A planned expense with this month's spending against it."""

    planned_expense: PlannedExpense
    amount_spent: Decimal
    amount_left: Decimal
    percentage_spent: Decimal

    @property
    def remaining(self) -> Decimal:
        """What is still reserved for this planned expense (never negative)."""
        return max(Decimal("0"), self.amount_left)

    @property
    def is_completed(self) -> bool:
        return self.percentage_spent >= 100


class PlannedExpensesView(BaseModel):
    """Active planned expenses of a month and the transactions charged to them."""

    period: BudgetPeriod
    total: Decimal = Decimal("0")
    planned_expenses: list[PlannedExpenseView] = Field(default_factory=list)
    items: list[BudgetSectionItem] = Field(default_factory=list)


class OtherExpensesView(BaseModel):
    """Discretionary spending not already covered by any budget line."""

    period: BudgetPeriod
    total: Decimal = Decimal("0")
    items: list[BudgetSectionItem] = Field(default_factory=list)


class ProjectedBalance(BaseModel):
    """
    Money available for a month, with the figures it was derived from.

    Current and future months:
        accounts_total + unpaid_recurring_net + unpaid_transaction_net
        - unpaid_savings_total - unpaid_planned_expense_total
    Past months:
        posted_income_total - posted_expense_total
    """

    period: BudgetPeriod
    is_past_month: bool
    projected_balance: Decimal
    accounts_total: Decimal = Decimal("0")
    unpaid_recurring_net: Decimal = Decimal("0")
    unpaid_transaction_net: Decimal = Decimal("0")
    unpaid_savings_total: Decimal = Decimal("0")
    unpaid_planned_expense_total: Decimal = Decimal("0")
    posted_income_total: Decimal = Decimal("0")
    posted_expense_total: Decimal = Decimal("0")


class DashboardBalance(BaseModel):
    """Sum of all active account balances."""

    total: Decimal
    account_count: int = Field(ge=0)


class CalendarView(BaseModel):
    """Per-month transaction counts."""

    year_month: str
    transfers_count: int = Field(ge=0)
    expenses_count: int = Field(ge=0)
    incomes_count: int = Field(ge=0)


class DashboardView(BaseModel):
    """Everything the home screen shows for one month."""

    projection: ProjectedBalance
    balance: DashboardBalance
    recent_transactions: list[Transaction] = Field(default_factory=list)
    calendar_view: CalendarView
    savings: list[BudgetSectionItem] = Field(default_factory=list)
