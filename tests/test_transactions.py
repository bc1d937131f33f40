"""
Tests for the transaction lifecycle

Flows run end to end against in-memory stores: validation, persistence
and balance synchronization together.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from budget_manager.models import (
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
)
from budget_manager.services.storage import (
    AccountNotFoundError,
    TransactionNotFoundError,
)
from budget_manager.validation import (
    AccountArchivedError,
    InvalidTransitionError,
    MonthlyTransactionRuleError,
    ReferentialIntegrityError,
    TransactionValidationError,
    TransferRuleError,
)

from conftest import OWNER, add_account, balance_of


def expense(account, amount="200.00", is_applied=True, **fields):
    return TransactionCreate(
        transaction_type=fields.pop("transaction_type", TransactionType.EXPENSE),
        amount=Decimal(amount),
        transaction_date=fields.pop("transaction_date", date(2024, 3, 10)),
        account_id=account.id,
        account_name=account.name,
        is_applied=is_applied,
        **fields,
    )


def transfer(source, destination, amount="150.00", **fields):
    return TransactionCreate(
        transaction_type=TransactionType.TRANSFER,
        amount=Decimal(amount),
        transaction_date=fields.pop("transaction_date", date(2024, 3, 12)),
        from_account_id=source.id,
        from_account_name=source.name,
        to_account_id=destination.id,
        to_account_name=destination.name,
        **fields,
    )


def as_update(request, **changes):
    return TransactionUpdate(**{**request.model_dump(), **changes})


class TestCreate:
    """Tests for creating transactions."""

    @pytest.mark.asyncio
    async def test_applied_expense_debits_account(self, stores, manager):
        """Test an applied expense of 200 takes Checking from 1000 to 800."""
        checking = await add_account(stores, "Checking", "1000")

        created = await manager.create(expense(checking), OWNER)

        assert await balance_of(stores, checking) == Decimal("800")
        assert created.year_month == "2024-03"
        assert (await manager.get(created.id, OWNER)).id == created.id

    @pytest.mark.asyncio
    async def test_pending_expense_leaves_balance(self, stores, manager):
        """Test a pending expense is stored without moving money."""
        checking = await add_account(stores, "Checking", "1000")

        await manager.create(expense(checking, is_applied=False), OWNER)

        assert await balance_of(stores, checking) == Decimal("1000")
        assert len(await stores.transactions.query(OWNER)) == 1

    @pytest.mark.asyncio
    async def test_transfer_then_delete_restores_balances(self, stores, manager):
        """Test a 150 transfer and its deletion."""
        checking = await add_account(stores, "Checking", "800")
        savings = await add_account(stores, "Savings", "300")

        created = await manager.create(transfer(checking, savings), OWNER)
        assert await balance_of(stores, checking) == Decimal("650")
        assert await balance_of(stores, savings) == Decimal("450")

        assert await manager.delete(created.id, OWNER) is True
        assert await balance_of(stores, checking) == Decimal("800")
        assert await balance_of(stores, savings) == Decimal("300")

    @pytest.mark.asyncio
    async def test_transfer_fields_dropped_for_non_transfers(self, stores, manager):
        """Test from/to fields on a non-transfer request are not persisted."""
        checking = await add_account(stores, "Checking", "100")
        request = expense(checking, from_account_id=uuid4(), to_account_id=uuid4())

        created = await manager.create(request, OWNER)
        assert created.from_account_id is None
        assert created.to_account_id is None

    @pytest.mark.asyncio
    async def test_archived_account_rejected_without_side_effects(self, stores, manager):
        """Test a rejected create writes nothing."""
        closed = await add_account(stores, "Closed", "100", is_archived=True)

        with pytest.raises(AccountArchivedError):
            await manager.create(expense(closed), OWNER)

        assert await balance_of(stores, closed) == Decimal("100")
        assert await stores.transactions.query(OWNER) == []

    @pytest.mark.asyncio
    async def test_missing_account_rejected(self, stores, manager):
        """Test an unknown account is a not-found error."""
        ghost = await add_account(stores, "Ghost", owner_id="other-user")

        with pytest.raises(AccountNotFoundError):
            await manager.create(expense(ghost), OWNER)

    @pytest.mark.asyncio
    async def test_non_transfer_requires_account(self, manager):
        """Test a non-transfer without account_id is rejected."""
        request = TransactionCreate(
            transaction_type=TransactionType.INCOME,
            amount=Decimal("10"),
            transaction_date=date(2024, 3, 1),
        )

        with pytest.raises(TransactionValidationError, match="account_id is required"):
            await manager.create(request, OWNER)

    @pytest.mark.asyncio
    async def test_transfer_to_same_account_rejected(self, stores, manager):
        """Test transfer endpoint rules run on create."""
        checking = await add_account(stores, "Checking", "100")

        with pytest.raises(TransferRuleError):
            await manager.create(transfer(checking, checking), OWNER)

    @pytest.mark.asyncio
    async def test_monthly_created_applied_rejected(self, stores, manager):
        """Test monthly postings must be created pending."""
        checking = await add_account(stores, "Checking", "100")
        request = expense(
            checking,
            transaction_type=TransactionType.MONTHLY_EXPENSE,
            monthly_key=uuid4(),
        )

        with pytest.raises(MonthlyTransactionRuleError):
            await manager.create(request, OWNER)
        assert await balance_of(stores, checking) == Decimal("100")


class TestUpdate:
    """Tests for updating transactions."""

    @pytest.mark.asyncio
    async def test_amount_change_reapplies(self, stores, manager):
        """Test changing an applied amount reverses the old and applies the new."""
        checking = await add_account(stores, "Checking", "1000")
        request = expense(checking)
        created = await manager.create(request, OWNER)

        updated = await manager.update(
            created.id, as_update(request, amount=Decimal("50")), OWNER
        )

        assert await balance_of(stores, checking) == Decimal("950")
        assert updated.amount == Decimal("50")
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_pending_to_applied_posts_once(self, stores, manager):
        """Test applying a pending monthly posting moves money once."""
        checking = await add_account(stores, "Checking", "1000")
        request = expense(
            checking,
            "300",
            is_applied=False,
            transaction_type=TransactionType.MONTHLY_EXPENSE,
        )
        created = await manager.create(request, OWNER)

        await manager.update(created.id, as_update(request, is_applied=True), OWNER)

        assert await balance_of(stores, checking) == Decimal("700")

    @pytest.mark.asyncio
    async def test_move_to_other_account(self, stores, manager):
        """Test moving an applied expense between accounts."""
        checking = await add_account(stores, "Checking", "1000")
        card = await add_account(stores, "Card", "0")
        request = expense(checking, "100")
        created = await manager.create(request, OWNER)

        await manager.update(
            created.id,
            as_update(request, account_id=card.id, account_name=card.name),
            OWNER,
        )

        assert await balance_of(stores, checking) == Decimal("1000")
        assert await balance_of(stores, card) == Decimal("-100")

    @pytest.mark.asyncio
    async def test_update_date_recomputes_index(self, stores, manager):
        """Test the month index follows the new date."""
        checking = await add_account(stores, "Checking", "0")
        request = expense(checking, is_applied=False)
        created = await manager.create(request, OWNER)

        updated = await manager.update(
            created.id,
            as_update(request, transaction_date=date(2024, 4, 2)),
            OWNER,
        )
        assert updated.year_month == "2024-04"
        assert await manager.list_for_month(OWNER, 2024, 3) == []

    @pytest.mark.asyncio
    async def test_unapply_rejected_and_nothing_changes(self, stores, manager):
        """Test an applied posting cannot be un-applied."""
        checking = await add_account(stores, "Checking", "1000")
        request = expense(checking)
        created = await manager.create(request, OWNER)

        with pytest.raises(InvalidTransitionError):
            await manager.update(created.id, as_update(request, is_applied=False), OWNER)

        assert await balance_of(stores, checking) == Decimal("800")
        assert (await manager.get(created.id, OWNER)).is_applied is True

    @pytest.mark.asyncio
    async def test_type_change_rejected_when_applied(self, stores, manager):
        """Test an applied posting keeps its type."""
        checking = await add_account(stores, "Checking", "1000")
        request = expense(checking)
        created = await manager.create(request, OWNER)

        with pytest.raises(InvalidTransitionError):
            await manager.update(
                created.id,
                as_update(request, transaction_type=TransactionType.INCOME),
                OWNER,
            )

    @pytest.mark.asyncio
    async def test_reversal_on_archived_account_allowed(self, stores, manager):
        """Test an old posting on a since-archived account can still be moved."""
        old_card = await add_account(stores, "Old Card", "0")
        checking = await add_account(stores, "Checking", "500")
        request = expense(old_card, "40")
        created = await manager.create(request, OWNER)

        archived = await stores.accounts.get_by_id(old_card.id, OWNER)
        archived.is_archived = True
        await stores.accounts.update(archived)

        await manager.update(
            created.id,
            as_update(request, account_id=checking.id, account_name=checking.name),
            OWNER,
        )

        assert await balance_of(stores, old_card) == Decimal("0")
        assert await balance_of(stores, checking) == Decimal("460")

    @pytest.mark.asyncio
    async def test_deleted_account_blocks_update(self, stores, manager):
        """Test a vanished account surfaces as an integrity error before any write."""
        gone = await add_account(stores, "Gone", "0")
        checking = await add_account(stores, "Checking", "500")
        request = expense(gone, "40")
        created = await manager.create(request, OWNER)
        await stores.accounts.delete(gone.id, OWNER)

        with pytest.raises(ReferentialIntegrityError):
            await manager.update(
                created.id,
                as_update(request, account_id=checking.id),
                OWNER,
            )

        assert await balance_of(stores, checking) == Decimal("500")
        assert (await manager.get(created.id, OWNER)).account_id == gone.id

    @pytest.mark.asyncio
    async def test_update_transfer_amount(self, stores, manager):
        """Test editing a transfer re-runs both legs."""
        checking = await add_account(stores, "Checking", "800")
        savings = await add_account(stores, "Savings", "300")
        request = transfer(checking, savings)
        created = await manager.create(request, OWNER)

        await manager.update(created.id, as_update(request, amount=Decimal("100")), OWNER)

        assert await balance_of(stores, checking) == Decimal("700")
        assert await balance_of(stores, savings) == Decimal("400")

    @pytest.mark.asyncio
    async def test_update_missing_transaction(self, stores, manager):
        """Test updating an unknown id raises TransactionNotFoundError."""
        checking = await add_account(stores, "Checking", "0")

        with pytest.raises(TransactionNotFoundError):
            await manager.update(uuid4(), as_update(expense(checking)), OWNER)


class TestDeleteAndRead:
    """Tests for deletion and read helpers."""

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, manager):
        """Test deleting an unknown id succeeds without effect."""
        assert await manager.delete(uuid4(), OWNER) is False

    @pytest.mark.asyncio
    async def test_delete_pending_keeps_balance(self, stores, manager):
        """Test deleting a pending posting does not touch balances."""
        checking = await add_account(stores, "Checking", "1000")
        created = await manager.create(expense(checking, is_applied=False), OWNER)

        await manager.delete(created.id, OWNER)

        assert await balance_of(stores, checking) == Decimal("1000")
        assert await stores.transactions.query(OWNER) == []

    @pytest.mark.asyncio
    async def test_delete_twice(self, stores, manager):
        """Test the second delete of an applied posting changes nothing."""
        checking = await add_account(stores, "Checking", "1000")
        created = await manager.create(expense(checking), OWNER)

        await manager.delete(created.id, OWNER)
        await manager.delete(created.id, OWNER)

        assert await balance_of(stores, checking) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, manager):
        """Test get() raises for unknown ids."""
        with pytest.raises(TransactionNotFoundError):
            await manager.get(uuid4(), OWNER)

    @pytest.mark.asyncio
    async def test_list_for_month_newest_first(self, stores, manager):
        """Test month listing order and scoping."""
        checking = await add_account(stores, "Checking", "0")
        for day in (3, 20, 11):
            await manager.create(
                expense(checking, "1", is_applied=False, transaction_date=date(2024, 3, day)),
                OWNER,
            )
        await manager.create(
            expense(checking, "1", is_applied=False, transaction_date=date(2024, 4, 1)),
            OWNER,
        )

        listed = await manager.list_for_month(OWNER, 2024, 3)
        assert [t.day for t in listed] == [20, 11, 3]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
