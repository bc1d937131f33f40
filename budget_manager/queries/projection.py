"""
Budget Projection Engine

DESIGN DECISION: Projection is READ-ONLY and DETERMINISTIC.
Every figure is recomputed from stored data on each call. Nothing is
cached and nothing is written, so calling any method twice over unchanged
data returns the same result.

Sources (fetched concurrently):
- Accounts → current balances
- Transactions of the month → postings, applied or pending
- Recurring items → monthly obligations not yet posted
- Savings goals → monthly contributions not yet posted
- Planned expenses → what is still reserved for a category

A recurring item or savings goal is "paid" for a month as soon as any
transaction of that month links to it (monthly_key / saving_key).
"""

import asyncio
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from budget_manager.config import AppSettings, get_settings
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
from budget_manager.models.entities import (
    Account,
    PlannedExpense,
    RecurringItem,
    RecurringItemType,
    SavingGoal,
    Transaction,
    TransactionType,
)
from budget_manager.services.storage.stores import EntityStores


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
_PERCENT = Decimal("0.01")


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(
        transactions,
        key=lambda t: (t.transaction_date, t.created_at),
        reverse=True,
    )


class BudgetProjectionEngine:
    """
    Computes month-level budget figures for one owner.

    GUARANTEES:
    - Never mutates any store
    - Same inputs, same outputs
    - "Past month" is judged against today in the configured timezone
    """

    def __init__(
        self,
        stores: EntityStores,
        today_provider: Optional[Callable[[], date]] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._stores = stores
        self._settings = settings or get_settings().app
        self._today = today_provider or self._today_in_timezone

    def _today_in_timezone(self) -> date:
        return datetime.now(ZoneInfo(self._settings.timezone)).date()

    # =========================================================================
    # PROJECTED BALANCE
    # =========================================================================

    async def get_projected_balance(
        self,
        owner_id: str,
        year: int,
        month: int,
    ) -> ProjectedBalance:
        """
        Money available for a month.

        Past months report what actually happened (posted income minus
        posted expense). The current and future months start from today's
        account balances and add everything still expected to happen.
        """
        period = BudgetPeriod(year=year, month=month)
        accounts, transactions, recurring_items, saving_goals, planned_expenses = (
            await self._fetch(owner_id, period)
        )
        return self._project(
            period,
            accounts,
            transactions,
            recurring_items,
            saving_goals,
            planned_expenses,
        )

    def _project(
        self,
        period: BudgetPeriod,
        accounts: list[Account],
        transactions: list[Transaction],
        recurring_items: list[RecurringItem],
        saving_goals: list[SavingGoal],
        planned_expenses: list[PlannedExpense],
    ) -> ProjectedBalance:
        if period.is_before(BudgetPeriod.from_date(self._today())):
            posted = [t for t in transactions if t.is_applied]
            income = _sum(t.amount for t in posted if t.transaction_type.is_income)
            expense = _sum(t.amount for t in posted if t.transaction_type.is_expense)

            logger.debug(
                "projection_past_month",
                year_month=period.year_month,
                posted_income=str(income),
                posted_expense=str(expense),
            )
            return ProjectedBalance(
                period=period,
                is_past_month=True,
                projected_balance=income - expense,
                posted_income_total=income,
                posted_expense_total=expense,
            )

        monthly_keys = {t.monthly_key for t in transactions if t.monthly_key}
        saving_keys = {t.saving_key for t in transactions if t.saving_key}

        accounts_total = _sum(
            a.current_balance
            for a in accounts
            if not a.is_archived and a.sums_to_monthly_budget
        )
        unpaid_recurring = _sum(
            item.signed_amount
            for item in recurring_items
            if item.id not in monthly_keys
        )
        unpaid_transactions = _sum(
            t.signed_amount for t in transactions if not t.is_applied
        )
        unpaid_savings = _sum(
            goal.amount_per_month
            for goal in saving_goals
            if goal.id not in saving_keys
        )
        unpaid_planned = _sum(
            view.remaining
            for view in self._planned_expense_views(period, planned_expenses, transactions)
        )

        projected = (
            accounts_total
            + unpaid_recurring
            + unpaid_transactions
            - unpaid_savings
            - unpaid_planned
        )

        logger.debug(
            "projection_computed",
            year_month=period.year_month,
            projected_balance=str(projected),
        )
        return ProjectedBalance(
            period=period,
            is_past_month=False,
            projected_balance=projected,
            accounts_total=accounts_total,
            unpaid_recurring_net=unpaid_recurring,
            unpaid_transaction_net=unpaid_transactions,
            unpaid_savings_total=unpaid_savings,
            unpaid_planned_expense_total=unpaid_planned,
        )

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def get_dashboard(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> DashboardView:
        """Home screen summary. Defaults to the current month."""
        if year is None or month is None:
            period = BudgetPeriod.from_date(self._today())
        else:
            period = BudgetPeriod(year=year, month=month)

        logger.info("dashboard_requested", owner_id=owner_id, year_month=period.year_month)

        accounts, transactions, recurring_items, saving_goals, planned_expenses = (
            await self._fetch(owner_id, period)
        )

        active_accounts = [a for a in accounts if not a.is_archived]
        balance = DashboardBalance(
            total=_sum(a.current_balance for a in active_accounts),
            account_count=len(active_accounts),
        )

        calendar_view = CalendarView(
            year_month=period.year_month,
            transfers_count=sum(1 for t in transactions if t.transaction_type.is_transfer),
            expenses_count=sum(1 for t in transactions if t.transaction_type.is_expense),
            incomes_count=sum(1 for t in transactions if t.transaction_type.is_income),
        )

        limit = self._settings.recent_transactions_limit
        return DashboardView(
            projection=self._project(
                period,
                accounts,
                transactions,
                recurring_items,
                saving_goals,
                planned_expenses,
            ),
            balance=balance,
            recent_transactions=_newest_first(transactions)[:limit],
            calendar_view=calendar_view,
            savings=self._saving_items(saving_goals, transactions),
        )

    # =========================================================================
    # BUDGET VIEWS
    # =========================================================================

    async def get_income_after_fixed_expenses(
        self,
        owner_id: str,
        year: int,
        month: int,
    ) -> IncomeAfterFixedExpenses:
        """Income left after monthly obligations and savings contributions."""
        period = BudgetPeriod(year=year, month=month)
        recurring_items, saving_goals, transactions = await asyncio.gather(
            self._stores.recurring_items.query(owner_id),
            self._stores.saving_goals.query(owner_id),
            self._month_transactions(owner_id, period),
        )

        monthly_incomes = self._section(
            self._recurring_item(item, transactions)
            for item in recurring_items
            if item.item_type is RecurringItemType.INCOME
        )
        monthly_expenses = self._section(
            self._recurring_item(item, transactions)
            for item in recurring_items
            if item.item_type is RecurringItemType.EXPENSE
        )
        savings = self._section(self._saving_items(saving_goals, transactions))
        incomes = self._section(
            self._transaction_item(t, name=t.notes, linked=True)
            for t in transactions
            if t.transaction_type is TransactionType.INCOME and t.monthly_key is None
        )

        total = (
            monthly_incomes.total
            + incomes.total
            - monthly_expenses.total
            - savings.total
        )

        return IncomeAfterFixedExpenses(
            period=period,
            total=total,
            monthly_incomes=monthly_incomes,
            monthly_expenses=monthly_expenses,
            savings=savings,
            incomes=incomes,
        )

    async def get_planned_expenses(
        self,
        owner_id: str,
        year: int,
        month: int,
        planned_expense_id: Optional[UUID] = None,
    ) -> PlannedExpensesView:
        """
        Spending against each planned expense active this month.

        When planned_expense_id is given, items are limited to the
        transactions charged to that planned expense. An id that is not
        active this month yields no items.
        """
        period = BudgetPeriod(year=year, month=month)
        planned_expenses, transactions = await asyncio.gather(
            self._stores.planned_expenses.query(owner_id),
            self._month_transactions(owner_id, period),
        )

        views = self._planned_expense_views(period, planned_expenses, transactions)
        active = [view.planned_expense for view in views]

        if planned_expense_id is not None:
            active = [pe for pe in active if pe.id == planned_expense_id]

        charged = [t for t in transactions if any(pe.matches(t) for pe in active)]

        return PlannedExpensesView(
            period=period,
            total=_sum(
                max(view.planned_expense.total_amount, view.amount_spent)
                for view in views
            ),
            planned_expenses=views,
            items=[
                self._transaction_item(t, name=t.category_name)
                for t in _newest_first(charged)
            ],
        )

    async def get_other_expenses(
        self,
        owner_id: str,
        year: int,
        month: int,
    ) -> OtherExpensesView:
        """Expenses not covered by recurring items, savings or planned expenses."""
        period = BudgetPeriod(year=year, month=month)
        planned_expenses, transactions = await asyncio.gather(
            self._stores.planned_expenses.query(owner_id),
            self._month_transactions(owner_id, period),
        )

        active = [
            pe for pe in planned_expenses if pe.is_active_in(period.year, period.month)
        ]
        other = [
            t
            for t in transactions
            if t.transaction_type is TransactionType.EXPENSE
            and t.monthly_key is None
            and t.saving_key is None
            and not t.remove_from_spending_plan
            and not any(pe.matches(t) for pe in active)
        ]

        items = [
            self._transaction_item(t, name=t.category_name, linked=True)
            for t in _newest_first(other)
        ]
        return OtherExpensesView(
            period=period,
            total=_sum(item.amount for item in items),
            items=items,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _fetch(self, owner_id: str, period: BudgetPeriod):
        """All five sources a projection needs, fetched concurrently."""
        return await asyncio.gather(
            self._stores.accounts.query(owner_id),
            self._month_transactions(owner_id, period),
            self._stores.recurring_items.query(owner_id),
            self._stores.saving_goals.query(owner_id),
            self._stores.planned_expenses.query(owner_id),
        )

    async def _month_transactions(
        self,
        owner_id: str,
        period: BudgetPeriod,
    ) -> list[Transaction]:
        year_month = period.year_month
        return await self._stores.transactions.query(
            owner_id,
            lambda t: t.year_month == year_month,
        )

    @staticmethod
    def _planned_expense_views(
        period: BudgetPeriod,
        planned_expenses: list[PlannedExpense],
        transactions: list[Transaction],
    ) -> list[PlannedExpenseView]:
        views = []
        for pe in planned_expenses:
            if not pe.is_active_in(period.year, period.month):
                continue

            spent = _sum(t.amount for t in transactions if pe.matches(t))
            if pe.total_amount > 0:
                percentage = (spent / pe.total_amount * 100).quantize(
                    _PERCENT, rounding=ROUND_HALF_UP
                )
            else:
                percentage = ZERO

            views.append(PlannedExpenseView(
                planned_expense=pe,
                amount_spent=spent,
                amount_left=pe.total_amount - spent,
                percentage_spent=percentage,
            ))
        return views

    @staticmethod
    def _section(items: Iterable[BudgetSectionItem]) -> BudgetSection:
        items = list(items)
        return BudgetSection(total=_sum(item.amount for item in items), items=items)

    @staticmethod
    def _recurring_item(
        item: RecurringItem,
        transactions: list[Transaction],
    ) -> BudgetSectionItem:
        linked = next((t for t in transactions if t.monthly_key == item.id), None)
        return BudgetSectionItem(
            id=item.id,
            owner_id=item.owner_id,
            amount=linked.amount if linked else item.amount,
            is_applied=linked is not None,
            transaction_id=linked.id if linked else None,
            name=item.notes,
            notes=item.notes,
            day_of_month=item.day_of_month,
            item_type=item.item_type,
            account_id=item.account_id,
            account_name=item.account_name,
            category_id=item.category_id,
            category_name=item.category_name,
            subcategory=item.subcategory,
            created_at=item.created_at,
            updated_at=item.updated_at,
            source="monthly_transaction",
        )

    @staticmethod
    def _saving_items(
        saving_goals: list[SavingGoal],
        transactions: list[Transaction],
    ) -> list[BudgetSectionItem]:
        items = []
        for goal in saving_goals:
            linked = next((t for t in transactions if t.saving_key == goal.id), None)
            items.append(BudgetSectionItem(
                id=goal.id,
                owner_id=goal.owner_id,
                amount=linked.amount if linked else goal.amount_per_month,
                is_applied=linked is not None,
                transaction_id=linked.id if linked else None,
                name=goal.name,
                icon=goal.icon,
                color=goal.color,
                goal_amount=goal.goal_amount,
                saved_amount=goal.saved_amount,
                amount_per_month=goal.amount_per_month,
                created_at=goal.created_at,
                updated_at=goal.updated_at,
                source="saving",
            ))
        return items

    @staticmethod
    def _transaction_item(
        transaction: Transaction,
        name: Optional[str],
        linked: bool = False,
    ) -> BudgetSectionItem:
        return BudgetSectionItem(
            id=transaction.id,
            owner_id=transaction.owner_id,
            amount=transaction.amount,
            is_applied=transaction.is_applied,
            transaction_id=transaction.id if linked else None,
            name=name,
            notes=transaction.notes,
            day_of_month=transaction.day,
            icon=transaction.category_image,
            color=transaction.category_color,
            account_id=transaction.account_id,
            account_name=transaction.account_name,
            category_id=transaction.category_id,
            category_name=transaction.category_name,
            subcategory=transaction.subcategory,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
            source="transaction",
        )
