"""
Transaction Validation

Business rules checked before any transaction is persisted or any balance
is touched.

DESIGN DECISION: Two strengths of account check.

STRICT (new postings):
- Account must exist
- Account must not be archived

LENIENT (reversal of an old posting during update):
- Account must exist
- Archived is fine; money already moved through it has to come back

A missing account at reversal time is a referential integrity problem, not
a plain "not found": the caller cannot fix it by retrying with other input.

IMPORTANT: Validation never mutates anything. It either returns or raises.
"""

from typing import Optional
from uuid import UUID

import structlog

from budget_manager.models.commands import TransactionUpdate
from budget_manager.models.entities import Account, Transaction, TransactionType
from budget_manager.services.storage.interface import (
    AccountNotFoundError,
    EntityStore,
)


logger = structlog.get_logger(__name__)


class TransactionValidationError(Exception):
    """Base exception for rejected transaction requests."""
    pass


class AccountArchivedError(TransactionValidationError):
    """Raised when a new posting targets an archived account."""

    def __init__(self, account: Account, message: Optional[str] = None):
        self.account_id = account.id
        self.account_name = account.name
        super().__init__(
            message or f"Cannot create transactions for archived account {account.name}"
        )


class TransferRuleError(TransactionValidationError):
    """Raised when transfer endpoints are missing or identical."""
    pass


class MonthlyTransactionRuleError(TransactionValidationError):
    """Raised when a monthly posting is created already applied."""
    pass


class InvalidTransitionError(TransactionValidationError):
    """Raised when an update would make an illegal state change."""
    pass


class ReferentialIntegrityError(Exception):
    """Raised when an account referenced by an applied posting no longer exists."""

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(
            f"Cannot update transaction: original account {account_id} no longer exists. "
            "The account may have been deleted. Please contact support if you need "
            "to update this transaction."
        )


class TransactionValidator:
    """
    Checks transaction requests against accounts and business rules.

    Account lookups go through the account store; everything else is a
    pure check on the request.
    """

    def __init__(self, account_store: EntityStore[Account]):
        """
        Initialize validator.

        Args:
            account_store: Store used to look up referenced accounts
        """
        self._accounts = account_store

    async def validate_account_exists(self, account_id: UUID, owner_id: str) -> Account:
        """
        Strict check for an account receiving a new posting.

        Raises:
            AccountNotFoundError: If the account does not exist for this owner
            AccountArchivedError: If the account is archived
        """
        account = await self._accounts.get_by_id(account_id, owner_id)

        if account is None:
            logger.error("account_not_found", account_id=str(account_id), owner_id=owner_id)
            raise AccountNotFoundError(account_id)

        if account.is_archived:
            logger.error("account_archived", account_id=str(account_id))
            raise AccountArchivedError(account)

        logger.debug("account_validated", account_id=str(account_id), owner_id=owner_id)
        return account

    async def validate_account_exists_for_reversal(
        self,
        account_id: UUID,
        owner_id: str,
    ) -> Account:
        """
        Lenient check for an account whose balance is about to be reversed.

        Raises:
            ReferentialIntegrityError: If the account no longer exists
        """
        account = await self._accounts.get_by_id(account_id, owner_id)

        if account is None:
            logger.error(
                "reversal_account_missing",
                account_id=str(account_id),
                owner_id=owner_id,
            )
            raise ReferentialIntegrityError(account_id)

        logger.debug(
            "reversal_account_validated",
            account_id=str(account_id),
            is_archived=account.is_archived,
        )
        return account

    def validate_transfer_rules(
        self,
        from_account_id: Optional[UUID],
        to_account_id: Optional[UUID],
    ) -> None:
        """Both endpoints are required and must differ."""
        if from_account_id is None:
            logger.error("transfer_missing_source")
            raise TransferRuleError("from_account_id is required for transfer transactions")

        if to_account_id is None:
            logger.error("transfer_missing_destination")
            raise TransferRuleError("to_account_id is required for transfer transactions")

        if from_account_id == to_account_id:
            logger.error("transfer_same_account", account_id=str(from_account_id))
            raise TransferRuleError("Cannot transfer to the same account")

    async def validate_transfer_accounts(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        owner_id: str,
    ) -> tuple[Account, Account]:
        """
        Strict check of both transfer endpoints.

        Returns:
            (source account, destination account)
        """
        source = await self._accounts.get_by_id(from_account_id, owner_id)
        if source is None:
            logger.error("transfer_source_not_found", account_id=str(from_account_id))
            raise AccountNotFoundError(
                from_account_id,
                f"Source account {from_account_id} not found",
            )
        if source.is_archived:
            logger.error("transfer_source_archived", account_id=str(from_account_id))
            raise AccountArchivedError(
                source,
                f"Cannot transfer from archived account {source.name}",
            )

        destination = await self._accounts.get_by_id(to_account_id, owner_id)
        if destination is None:
            logger.error("transfer_destination_not_found", account_id=str(to_account_id))
            raise AccountNotFoundError(
                to_account_id,
                f"Destination account {to_account_id} not found",
            )
        if destination.is_archived:
            logger.error("transfer_destination_archived", account_id=str(to_account_id))
            raise AccountArchivedError(
                destination,
                f"Cannot transfer to archived account {destination.name}",
            )

        return source, destination

    def validate_monthly_transaction_rules(
        self,
        transaction_type: TransactionType,
        is_applied: bool,
    ) -> None:
        """Monthly postings start pending; they are applied by a later update."""
        if transaction_type.is_monthly and is_applied:
            logger.error(
                "monthly_transaction_created_applied",
                transaction_type=transaction_type.value,
            )
            raise MonthlyTransactionRuleError(
                f"{transaction_type.value} transactions must be created with is_applied=False"
            )

    def validate_update_transition(
        self,
        old: Transaction,
        request: TransactionUpdate,
    ) -> None:
        """
        Reject state changes an update may not make.

        Once applied, a posting stays applied and keeps its type. The only
        way out is delete and recreate.
        """
        if not old.is_applied:
            return

        if not request.is_applied:
            logger.error("applied_to_pending_rejected", transaction_id=str(old.id))
            raise InvalidTransitionError(
                "Cannot change is_applied from true to false. "
                "Delete and recreate the transaction instead."
            )

        if old.transaction_type.is_transfer != request.transaction_type.is_transfer:
            logger.error("transfer_kind_change_rejected", transaction_id=str(old.id))
            raise InvalidTransitionError(
                "Cannot change to/from transfer type when the transaction is applied. "
                "Delete and recreate the transaction instead."
            )

        if old.transaction_type is not request.transaction_type:
            logger.error(
                "type_change_rejected",
                transaction_id=str(old.id),
                old_type=old.transaction_type.value,
                new_type=request.transaction_type.value,
            )
            raise InvalidTransitionError(
                "Cannot change transaction type when is_applied is true. "
                "Delete and recreate the transaction instead."
            )
