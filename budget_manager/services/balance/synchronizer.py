"""
Account Balance Synchronizer

Applies and reverses a transaction's monetary effect on account balances.

GUARANTEES:
- apply() and reverse() are exact inverses for every transaction type
- A transfer moves the same amount out of one account and into another
- Transfers are applied/reversed unconditionally; is_applied is never
  consulted here (callers decide via should_apply_balance)

KNOWN GAPS (accepted, not recovered):
- Each leg is a separate read-modify-write through the account store.
  Concurrent postings on the same account can lose an update.
- A transfer's two legs are not atomic. A failure or cancellation after
  the debit leaves the pair inconsistent.
"""

from decimal import Decimal
from uuid import UUID

import structlog

from budget_manager.models.entities import (
    Account,
    Transaction,
    TransactionType,
    utcnow,
)
from budget_manager.services.storage.interface import (
    AccountNotFoundError,
    EntityStore,
)


logger = structlog.get_logger(__name__)


class BalanceConfigurationError(Exception):
    """Transaction lacks the account references needed to move money."""

    def __init__(self, transaction_id: UUID, message: str):
        self.transaction_id = transaction_id
        super().__init__(message)


def should_apply_balance(transaction: Transaction) -> bool:
    """
    Whether a transaction currently affects balances.

    Transfers always do. Other types only when is_applied.
    """
    return transaction.transaction_type.is_transfer or transaction.is_applied


class AccountBalanceService:
    """
    Keeps Account.current_balance in sync with transactions.

    Expenses debit account_id, incomes credit it, transfers debit
    from_account_id and credit to_account_id.
    """

    def __init__(self, account_store: EntityStore[Account]):
        self._accounts = account_store

    async def apply(self, transaction: Transaction, owner_id: str) -> None:
        """Apply a transaction's effect to its account(s)."""
        logger.info(
            "balance_apply_started",
            transaction_id=str(transaction.id),
            transaction_type=transaction.transaction_type.value,
            owner_id=owner_id,
        )

        for account_id, delta in self._legs(transaction):
            await self._adjust(account_id, delta, owner_id, transaction)

        logger.info("balance_apply_completed", transaction_id=str(transaction.id))

    async def reverse(self, transaction: Transaction, owner_id: str) -> None:
        """Undo a previously applied transaction's effect."""
        logger.info(
            "balance_reverse_started",
            transaction_id=str(transaction.id),
            transaction_type=transaction.transaction_type.value,
            owner_id=owner_id,
        )

        # Same leg order as apply (source first for transfers), opposite sign
        for account_id, delta in self._legs(transaction):
            await self._adjust(account_id, -delta, owner_id, transaction)

        logger.info("balance_reverse_completed", transaction_id=str(transaction.id))

    def _legs(self, transaction: Transaction) -> list[tuple[UUID, Decimal]]:
        """
        The (account_id, delta) pairs applying this transaction produces.

        Raises:
            BalanceConfigurationError: If required account ids are missing,
                or a transfer's source and destination are the same
        """
        transaction_type = transaction.transaction_type
        amount = transaction.amount

        if transaction_type is TransactionType.TRANSFER:
            if transaction.from_account_id is None:
                logger.error(
                    "transfer_missing_source",
                    transaction_id=str(transaction.id),
                )
                raise BalanceConfigurationError(
                    transaction.id,
                    f"Transfer transaction {transaction.id} must have a source account (from_account_id)",
                )
            if transaction.to_account_id is None:
                logger.error(
                    "transfer_missing_destination",
                    transaction_id=str(transaction.id),
                )
                raise BalanceConfigurationError(
                    transaction.id,
                    f"Transfer transaction {transaction.id} must have a destination account (to_account_id)",
                )
            if transaction.from_account_id == transaction.to_account_id:
                logger.error(
                    "transfer_same_account",
                    transaction_id=str(transaction.id),
                    account_id=str(transaction.from_account_id),
                )
                raise BalanceConfigurationError(
                    transaction.id,
                    f"Transfer transaction {transaction.id} has the same source and destination account",
                )
            return [
                (transaction.from_account_id, -amount),
                (transaction.to_account_id, amount),
            ]

        if transaction.account_id is None:
            logger.error("transaction_missing_account", transaction_id=str(transaction.id))
            raise BalanceConfigurationError(
                transaction.id,
                f"Transaction {transaction.id} has no account_id",
            )

        if transaction_type.is_expense:
            return [(transaction.account_id, -amount)]
        if transaction_type.is_income:
            return [(transaction.account_id, amount)]

        raise BalanceConfigurationError(
            transaction.id,
            f"Unknown transaction type: {transaction_type}",
        )

    async def _adjust(
        self,
        account_id: UUID,
        delta: Decimal,
        owner_id: str,
        transaction: Transaction,
    ) -> Account:
        """Add `delta` to an account's balance and persist it."""
        account = await self._accounts.get_by_id(account_id, owner_id)
        if account is None:
            logger.error(
                "balance_account_not_found",
                account_id=str(account_id),
                owner_id=owner_id,
            )
            raise AccountNotFoundError(account_id)

        old_balance = account.current_balance
        account.current_balance = old_balance + delta
        account.updated_at = utcnow()

        updated = await self._accounts.update(account)

        logger.info(
            "balance_added" if delta >= 0 else "balance_deducted",
            account_id=str(account_id),
            amount=str(abs(delta)),
            transaction_id=str(transaction.id),
            transaction_type=transaction.transaction_type.value,
            old_balance=str(old_balance),
            new_balance=str(updated.current_balance),
        )
        return updated
