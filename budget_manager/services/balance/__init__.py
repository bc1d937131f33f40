"""Balance synchronization package."""

from budget_manager.services.balance.synchronizer import (
    AccountBalanceService,
    BalanceConfigurationError,
    should_apply_balance,
)

__all__ = [
    "AccountBalanceService",
    "BalanceConfigurationError",
    "should_apply_balance",
]
