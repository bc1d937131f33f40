"""
Core Data Models for Budget Manager

These models define the strict schemas for every entity the system stores.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Templates (recurring items, savings goals, planned expenses)
and postings (transactions) are separate aggregates. A transaction points
back to its template through monthly_key / saving_key. Templates never hold
a list of their postings.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def year_month_key(year: int, month: int) -> str:
    """Index key used to bucket transactions by month (YYYY-MM)."""
    return f"{year:04d}-{month:02d}"


Money = Annotated[Decimal, Field(ge=0, decimal_places=2)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Transaction kinds.

    Monthly variants are postings of a recurring item; they move money
    the same way as their plain counterparts.
    """
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    MONTHLY_EXPENSE = "monthly_expense"
    MONTHLY_INCOME = "monthly_income"

    @property
    def is_transfer(self) -> bool:
        return self is TransactionType.TRANSFER

    @property
    def is_income(self) -> bool:
        return self in (TransactionType.INCOME, TransactionType.MONTHLY_INCOME)

    @property
    def is_expense(self) -> bool:
        return self in (TransactionType.EXPENSE, TransactionType.MONTHLY_EXPENSE)

    @property
    def is_monthly(self) -> bool:
        return self in (
            TransactionType.MONTHLY_EXPENSE,
            TransactionType.MONTHLY_INCOME,
        )


class RecurringItemType(str, Enum):
    """Direction of a recurring (monthly) item."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# BASE
# =============================================================================

class OwnedEntity(BaseModel):
    """
    Fields shared by every stored entity.

    Every read and write is scoped by (id, owner_id).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entity ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user owning this entity"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="Creation timestamp (set by the store)"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp (refreshed by the store)"
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

class AccountType(BaseModel):
    """Display grouping of an account (e.g. Bank / Checking)."""

    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)


class Account(OwnedEntity):
    """
    A money container whose balance is kept in sync with transactions.

    current_balance is only mutated by the balance synchronizer.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Account name"
    )
    current_balance: Decimal = Field(
        default=Decimal("0"),
        description="Signed current balance"
    )
    account_type: Optional[AccountType] = None
    is_archived: bool = Field(
        default=False,
        description="Archived accounts cannot receive new transactions"
    )
    sums_to_monthly_budget: bool = Field(
        default=True,
        description="Whether the balance counts toward the monthly budget"
    )
    color: Optional[str] = Field(default=None, max_length=20)
    image: Optional[str] = Field(default=None, max_length=200)
    available_credit: Optional[Decimal] = Field(
        default=None,
        description="Credit line, for credit accounts"
    )

    @property
    def remaining_credit(self) -> Optional[Decimal]:
        """Credit still available: available_credit + current_balance."""
        if self.available_credit is None:
            return None
        return self.available_credit + self.current_balance


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(OwnedEntity):
    """
    A posting that may move money between accounts.

    Transfers always affect balances. Other types only while is_applied.
    """

    transaction_type: TransactionType
    amount: Money
    transaction_date: date

    # Index fields, always derived from transaction_date
    year: int = 0
    month: int = 0
    day: int = 0
    year_month: str = ""

    # Account references
    account_id: Optional[UUID] = None
    account_name: Optional[str] = None
    from_account_id: Optional[UUID] = None
    from_account_name: Optional[str] = None
    to_account_id: Optional[UUID] = None
    to_account_name: Optional[str] = None

    # Category references
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_image: Optional[str] = None
    category_color: Optional[str] = None
    subcategory: Optional[str] = None

    notes: Optional[str] = Field(default=None, max_length=1000)
    is_applied: bool = False
    applied_amount: Optional[Decimal] = None

    # Links to templates and paired transfer legs
    monthly_key: Optional[UUID] = None
    saving_key: Optional[UUID] = None
    transfer_id: Optional[str] = None
    remove_from_spending_plan: bool = False

    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='after')
    def sync_index_fields(self) -> 'Transaction':
        """Derive year/month/day/year_month and keep transfer fields on transfers only."""
        if not self.transaction_type.is_transfer and (
            self.from_account_id is not None or self.to_account_id is not None
        ):
            raise ValueError(
                "from_account_id/to_account_id are only allowed on transfers"
            )

        self.year = self.transaction_date.year
        self.month = self.transaction_date.month
        self.day = self.transaction_date.day
        self.year_month = year_month_key(self.year, self.month)
        return self

    @property
    def signed_amount(self) -> Decimal:
        """+amount for incomes, -amount for expenses, zero for transfers."""
        if self.transaction_type.is_income:
            return self.amount
        if self.transaction_type.is_expense:
            return -self.amount
        return Decimal("0")


# =============================================================================
# TEMPLATES
# =============================================================================

class RecurringItem(OwnedEntity):
    """
    A monthly income or expense template.

    Never affects balances itself. A month's posting references it through
    Transaction.monthly_key.
    """

    amount: Money
    item_type: RecurringItemType
    day_of_month: int = Field(..., ge=1, le=31)
    account_id: Optional[UUID] = None
    account_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    subcategory: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @property
    def signed_amount(self) -> Decimal:
        if self.item_type is RecurringItemType.INCOME:
            return self.amount
        return -self.amount


class SavingGoal(OwnedEntity):
    """A savings target funded by a default monthly contribution."""

    name: str = Field(..., min_length=1, max_length=200)
    icon: Optional[str] = None
    color: Optional[str] = None
    goal_amount: Money = Decimal("0")
    saved_amount: Money = Decimal("0")
    amount_per_month: Money = Decimal("0")


class PlannedExpense(OwnedEntity):
    """
    A spending ceiling for a category (and optionally a subcategory).

    Active for a month when recurring, or when expense_date falls in it.
    """

    name: str = Field(..., min_length=1, max_length=200)
    expense_date: Optional[date] = None
    is_recurring: bool = False
    total_amount: Money
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_image: Optional[str] = None
    category_color: Optional[str] = None
    subcategory: Optional[str] = None

    def is_active_in(self, year: int, month: int) -> bool:
        if self.is_recurring:
            return True
        return (
            self.expense_date is not None
            and self.expense_date.year == year
            and self.expense_date.month == month
        )

    def matches(self, transaction: Transaction) -> bool:
        """Whether an expense transaction counts against this planned expense."""
        if transaction.transaction_type is not TransactionType.EXPENSE:
            return False
        if self.category_id is None or transaction.category_id != self.category_id:
            return False
        if self.subcategory and transaction.subcategory != self.subcategory:
            return False
        return True
