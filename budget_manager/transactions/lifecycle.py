"""
Transaction Lifecycle Manager

Create, update and delete transactions while keeping account balances in
step with them.

FLOW (every mutation):
1. Validate → nothing has been written yet
2. Persist the transaction record
3. Move money (apply / reverse through the balance service)

DESIGN DECISION: Balance changes happen strictly AFTER the record is
persisted. A failed validation or a failed write never touches balances.

KNOWN GAPS:
- Update writes the new record, then reverses the old posting, then
  applies the new one. A failure between these steps is not rolled back.
- Delete reverses first, then removes the record. A failed removal leaves
  a posting whose effect was already undone.
"""

from typing import Optional
from uuid import UUID

import structlog

from budget_manager.models.commands import TransactionCreate, TransactionUpdate
from budget_manager.models.entities import Transaction
from budget_manager.services.balance.synchronizer import (
    AccountBalanceService,
    BalanceConfigurationError,
    should_apply_balance,
)
from budget_manager.services.storage.interface import (
    EntityStore,
    TransactionNotFoundError,
)
from budget_manager.validation.validator import (
    TransactionValidationError,
    TransactionValidator,
)


logger = structlog.get_logger(__name__)

_TRANSFER_FIELDS = (
    "from_account_id",
    "from_account_name",
    "to_account_id",
    "to_account_name",
)


class TransactionLifecycleManager:
    """
    Entry point for every transaction mutation.

    Composes the transaction store, the validator and the balance service.
    Holds no state of its own between calls.
    """

    def __init__(
        self,
        transaction_store: EntityStore[Transaction],
        validator: TransactionValidator,
        balance_service: AccountBalanceService,
    ):
        self._transactions = transaction_store
        self._validator = validator
        self._balance = balance_service

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def create(self, request: TransactionCreate, owner_id: str) -> Transaction:
        """
        Validate, persist and (when it counts) apply a new transaction.

        Raises:
            TransactionValidationError: If the request breaks a business rule
            AccountNotFoundError: If a referenced account does not exist
        """
        logger.info(
            "transaction_create_started",
            owner_id=owner_id,
            transaction_type=request.transaction_type.value,
            amount=str(request.amount),
        )

        await self._validate_accounts(request, owner_id)
        self._validator.validate_monthly_transaction_rules(
            request.transaction_type,
            request.is_applied,
        )

        transaction = self._build(request, owner_id)
        created = await self._transactions.create(transaction)

        logger.info(
            "transaction_created",
            transaction_id=str(created.id),
            owner_id=owner_id,
            year_month=created.year_month,
        )

        if should_apply_balance(created):
            await self._balance.apply(created, owner_id)

        return created

    async def update(
        self,
        transaction_id: UUID,
        request: TransactionUpdate,
        owner_id: str,
    ) -> Transaction:
        """
        Replace a transaction and move its balance effect accordingly.

        Raises:
            TransactionNotFoundError: If the transaction does not exist
            InvalidTransitionError: If the update would un-apply the posting
                or change its type while applied
            ReferentialIntegrityError: If an account of the old posting is gone
        """
        logger.info(
            "transaction_update_started",
            transaction_id=str(transaction_id),
            owner_id=owner_id,
        )

        old = await self._transactions.get_by_id(transaction_id, owner_id)
        if old is None:
            logger.error(
                "transaction_not_found",
                transaction_id=str(transaction_id),
                owner_id=owner_id,
            )
            raise TransactionNotFoundError(transaction_id)

        self._validator.validate_update_transition(old, request)

        old_applied = should_apply_balance(old)
        if old_applied:
            for account_id in self._reversal_accounts(old):
                await self._validator.validate_account_exists_for_reversal(
                    account_id,
                    owner_id,
                )

        await self._validate_accounts(request, owner_id)

        replacement = self._build(
            request,
            owner_id,
            id=old.id,
            created_at=old.created_at,
        )
        updated = await self._transactions.update(replacement)

        logger.info("transaction_updated", transaction_id=str(updated.id))

        new_applied = should_apply_balance(updated)
        logger.info(
            "transaction_balance_update",
            transaction_id=str(updated.id),
            old_applied=old_applied,
            new_applied=new_applied,
        )

        if old_applied:
            await self._balance.reverse(old, owner_id)
        if new_applied:
            await self._balance.apply(updated, owner_id)

        return updated

    async def delete(self, transaction_id: UUID, owner_id: str) -> bool:
        """
        Reverse (when applied) and remove a transaction.

        Deleting a transaction that does not exist is a no-op.

        Returns:
            True if a transaction was deleted
        """
        existing = await self._transactions.get_by_id(transaction_id, owner_id)
        if existing is None:
            logger.warning(
                "transaction_delete_missing",
                transaction_id=str(transaction_id),
                owner_id=owner_id,
            )
            return False

        if should_apply_balance(existing):
            await self._balance.reverse(existing, owner_id)

        deleted = await self._transactions.delete(transaction_id, owner_id)

        logger.info(
            "transaction_deleted",
            transaction_id=str(transaction_id),
            owner_id=owner_id,
            was_applied=should_apply_balance(existing),
        )
        return deleted

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, transaction_id: UUID, owner_id: str) -> Transaction:
        """Fetch one transaction or raise TransactionNotFoundError."""
        transaction = await self._transactions.get_by_id(transaction_id, owner_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def list_for_month(
        self,
        owner_id: str,
        year: int,
        month: int,
    ) -> list[Transaction]:
        """A month's transactions, newest first."""
        transactions = await self._transactions.query(
            owner_id,
            lambda t: t.year == year and t.month == month,
        )
        return sorted(
            transactions,
            key=lambda t: (t.transaction_date, t.created_at),
            reverse=True,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _validate_accounts(
        self,
        request: TransactionCreate,
        owner_id: str,
    ) -> None:
        """Strict checks of the account(s) a request will post to."""
        if request.transaction_type.is_transfer:
            self._validator.validate_transfer_rules(
                request.from_account_id,
                request.to_account_id,
            )
            await self._validator.validate_transfer_accounts(
                request.from_account_id,
                request.to_account_id,
                owner_id,
            )
            return

        if request.account_id is None:
            logger.error(
                "transaction_missing_account",
                transaction_type=request.transaction_type.value,
            )
            raise TransactionValidationError(
                f"account_id is required for {request.transaction_type.value} transactions"
            )

        await self._validator.validate_account_exists(request.account_id, owner_id)

    @staticmethod
    def _reversal_accounts(transaction: Transaction) -> list[UUID]:
        """Accounts whose balances a reversal of this posting will touch."""
        if transaction.transaction_type.is_transfer:
            account_ids: list[Optional[UUID]] = [
                transaction.from_account_id,
                transaction.to_account_id,
            ]
        else:
            account_ids = [transaction.account_id]

        if any(account_id is None for account_id in account_ids):
            raise BalanceConfigurationError(
                transaction.id,
                f"Transaction {transaction.id} is missing the account references needed to reverse it",
            )
        return account_ids

    @staticmethod
    def _build(
        request: TransactionCreate,
        owner_id: str,
        **identity,
    ) -> Transaction:
        """Turn a request into an entity; transfer endpoints only survive on transfers."""
        fields = request.model_dump()
        if not request.transaction_type.is_transfer:
            for name in _TRANSFER_FIELDS:
                fields.pop(name, None)
        return Transaction(owner_id=owner_id, **fields, **identity)
