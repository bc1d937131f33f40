"""Transaction validation package."""

from budget_manager.validation.validator import (
    AccountArchivedError,
    InvalidTransitionError,
    MonthlyTransactionRuleError,
    ReferentialIntegrityError,
    TransactionValidationError,
    TransactionValidator,
    TransferRuleError,
)

__all__ = [
    "TransactionValidator",
    # Exceptions
    "AccountArchivedError",
    "InvalidTransitionError",
    "MonthlyTransactionRuleError",
    "ReferentialIntegrityError",
    "TransactionValidationError",
    "TransferRuleError",
]
