"""
Pydantic schemas for transaction CRUD endpoints.

Transactions are single income or expense events on exactly one account.
The amount is the user-entered magnitude; its sign on the balance comes from
the transaction type.
"""

from datetime import date as date_type
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from fintrack.utils.constants import MAX_MONEY_VALUE, validate_category

TransactionType = Literal["income", "expense"]

TransactionCategory = Literal[
    "salary",
    "investment",
    "other_income",
    "food",
    "transport",
    "shopping",
    "entertainment",
    "bills",
    "health",
    "education",
    "other_expense",
]


# --- Transaction creation models ---

class TransactionCreateRequest(BaseModel):
    """
    Request to record a new transaction.
    """
    account_id: str = Field(..., description="UUID of the account affected by this transaction")
    type: TransactionType = Field(
        ...,
        description="Money direction: 'income' (money in) or 'expense' (money out)"
    )
    category: TransactionCategory = Field(
        ...,
        description="Category key; must belong to the transaction type",
        examples=["food", "salary"]
    )
    amount: float = Field(
        ...,
        description="Transaction amount as a magnitude (must be >= 0)",
        ge=0.0,
        le=MAX_MONEY_VALUE,
        allow_inf_nan=False,
        examples=[50000, 128.50]
    )
    date: date_type = Field(
        ...,
        description="Calendar date the transaction occurred (YYYY-MM-DD)",
        examples=["2025-10-30"]
    )
    description: Optional[str] = Field(
        None,
        description="Optional note for this transaction",
        max_length=500,
        examples=["Lunch with friends"]
    )

    @model_validator(mode="after")
    def _category_matches_type(self) -> "TransactionCreateRequest":
        validate_category(self.type, self.category)
        return self


# --- Transaction update models ---

class TransactionUpdateRequest(BaseModel):
    """
    Request to update an existing transaction.

    All fields are optional - only provided fields will be updated. Changing
    account_id moves the transaction's contribution to the new account.
    """
    account_id: Optional[str] = Field(None, description="Updated account UUID")
    type: Optional[TransactionType] = Field(None, description="Updated money direction")
    category: Optional[TransactionCategory] = Field(None, description="Updated category key")
    amount: Optional[float] = Field(
        None,
        description="Updated transaction amount (must be >= 0)",
        ge=0.0,
        le=MAX_MONEY_VALUE,
        allow_inf_nan=False
    )
    date: Optional[date_type] = Field(None, description="Updated calendar date")
    description: Optional[str] = Field(
        None,
        description="Updated note (pass empty string to clear)",
        max_length=500
    )


# --- Transaction response models ---

class TransactionDetailResponse(BaseModel):
    """
    Single transaction as stored.
    """
    id: str = Field(..., description="Transaction UUID")
    user_id: str = Field(..., description="Owner user UUID")
    account_id: str = Field(..., description="Account UUID")
    account_name: Optional[str] = Field(None, description="Name of the owning account, when embedded")
    account_currency: Optional[str] = Field(None, description="Currency of the owning account, when embedded")
    type: TransactionType = Field(..., description="Money direction")
    category: str = Field(..., description="Category key")
    amount: float = Field(..., description="Transaction amount (magnitude)")
    description: Optional[str] = Field(None, description="Transaction note")
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    created_at: str = Field(..., description="ISO-8601 timestamp when record was created")


class TransactionListResponse(BaseModel):
    """
    Response for GET /transactions - List of user's transactions.
    """
    transactions: List[TransactionDetailResponse] = Field(..., description="List of transaction records")
    count: int = Field(..., description="Total number of transactions returned")
    limit: int = Field(..., description="Limit used for pagination")
    offset: int = Field(..., description="Offset used for pagination")


class TransactionCreateResponse(BaseModel):
    """
    Response after successfully creating a transaction.
    """
    status: Literal["CREATED"] = Field("CREATED", description="Indicates the transaction was created")
    transaction_id: str = Field(..., description="UUID of created transaction record")
    transaction: TransactionDetailResponse = Field(..., description="Complete transaction details")
    message: str = Field(..., description="Success message", examples=["Transaction created successfully"])


class TransactionUpdateResponse(BaseModel):
    """
    Response after successfully updating a transaction.
    """
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates the transaction was updated")
    transaction_id: str = Field(..., description="UUID of updated transaction record")
    transaction: TransactionDetailResponse = Field(..., description="Complete updated transaction details")
    message: str = Field(..., description="Success message", examples=["Transaction updated successfully"])


class TransactionDeleteResponse(BaseModel):
    """
    Response after successfully deleting a transaction.
    """
    status: Literal["DELETED"] = Field("DELETED", description="Indicates the transaction was deleted")
    transaction_id: str = Field(..., description="UUID of deleted transaction record")
    message: str = Field(..., description="Success message", examples=["Transaction deleted successfully"])
