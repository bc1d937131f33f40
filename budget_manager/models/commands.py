"""
Command Models

Incoming requests for the transaction lifecycle. They carry what the caller
wants; ownership, ids, timestamps and index fields are filled in by the
lifecycle manager.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from budget_manager.models.entities import Money, TransactionType


class TransactionCreate(BaseModel):
    """Request to create a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    transaction_type: TransactionType
    amount: Money
    transaction_date: date

    account_id: Optional[UUID] = None
    account_name: Optional[str] = None
    from_account_id: Optional[UUID] = None
    from_account_name: Optional[str] = None
    to_account_id: Optional[UUID] = None
    to_account_name: Optional[str] = None

    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_image: Optional[str] = None
    category_color: Optional[str] = None
    subcategory: Optional[str] = None

    notes: Optional[str] = Field(default=None, max_length=1000)
    is_applied: bool = False
    applied_amount: Optional[Decimal] = None

    monthly_key: Optional[UUID] = None
    saving_key: Optional[UUID] = None
    transfer_id: Optional[str] = None
    remove_from_spending_plan: bool = False

    metadata: dict[str, Any] = Field(default_factory=dict)


class TransactionUpdate(TransactionCreate):
    """
    Full replacement of a transaction's editable fields.

    Same shape as a create request; the id comes from the call site.
    """
