"""
Pydantic schemas for account CRUD endpoints.

These models define the strict request/response contracts for account management.
Accounts are financial containers (bank, cash, credit card, e-wallet,
investment) with a running balance kept in line with their transactions.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from fintrack.utils.constants import DEFAULT_CURRENCY, MAX_MONEY_VALUE

# Account type enum (matches DB CHECK constraint)
AccountType = Literal[
    "bank",
    "cash",
    "credit_card",
    "e_wallet",
    "investment",
]


# --- Account response models ---

class AccountResponse(BaseModel):
    """
    Response for account details.
    """
    id: str = Field(..., description="Account UUID")
    user_id: str = Field(..., description="Owner user UUID (from auth.users)")
    name: str = Field(..., description="Human-readable account name")
    type: AccountType = Field(..., description="Kind of financial container")
    balance: float = Field(
        ...,
        description="Running balance (sum of transaction deltas, unless reset by the user)"
    )
    currency: str = Field(..., description="ISO currency code (e.g. 'VND')")
    color: str = Field(..., description="Hex color code for UI display (e.g., '#10B981')")
    created_at: str = Field(..., description="ISO-8601 timestamp when created")


# --- Account create models ---

class AccountCreateRequest(BaseModel):
    """
    Request to create a new account.
    """
    name: str = Field(
        ...,
        description="Human-readable account name",
        min_length=1,
        max_length=200,
        examples=["Vietcombank", "Wallet Cash"]
    )
    type: AccountType = Field(
        "bank",
        description="Account type",
        examples=["bank", "cash", "e_wallet"]
    )
    balance: float = Field(
        0.0,
        description="Opening balance. Stored directly; not backed by a transaction.",
        ge=-MAX_MONEY_VALUE,
        le=MAX_MONEY_VALUE,
        allow_inf_nan=False,
        examples=[0, 1500000]
    )
    currency: str = Field(
        DEFAULT_CURRENCY,
        description="ISO currency code",
        min_length=3,
        max_length=3,
        examples=["VND", "USD"]
    )
    color: str = Field(
        "#10B981",
        description="Hex color code for UI display",
        pattern=r'^#[0-9A-Fa-f]{6}$',
        examples=["#10B981", "#3B82F6"]
    )


class AccountCreateResponse(BaseModel):
    """
    Response after successfully creating an account.
    """
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    account: AccountResponse = Field(..., description="The created account")
    message: str = Field(..., description="Success message", examples=["Account created successfully"])


# --- Account update models ---

class AccountUpdateRequest(BaseModel):
    """
    Request to update an account.

    All fields are optional - only provided fields will be updated.

    NOTE: A balance here is an explicit reset. It is written as-is and is not
    reconciled against the account's transactions.
    """
    name: Optional[str] = Field(None, description="Updated account name", min_length=1, max_length=200)
    type: Optional[AccountType] = Field(None, description="Updated account type")
    balance: Optional[float] = Field(
        None,
        description="Explicit balance reset",
        ge=-MAX_MONEY_VALUE,
        le=MAX_MONEY_VALUE,
        allow_inf_nan=False
    )
    currency: Optional[str] = Field(None, description="Updated ISO currency code", min_length=3, max_length=3)
    color: Optional[str] = Field(
        None,
        description="Updated hex color code",
        pattern=r'^#[0-9A-Fa-f]{6}$'
    )


class AccountUpdateResponse(BaseModel):
    """
    Response after successfully updating an account.
    """
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful update")
    account: AccountResponse = Field(..., description="The updated account")
    message: str = Field(..., description="Success message", examples=["Account updated successfully"])


# --- Account delete / recompute models ---

class AccountDeleteResponse(BaseModel):
    """
    Response after successfully deleting an account.

    The account's transactions are removed by the store's cascade.
    """
    status: Literal["DELETED"] = Field("DELETED", description="Indicates successful deletion")
    account_id: str = Field(..., description="UUID of the deleted account")
    message: str = Field(..., description="Success message", examples=["Account deleted successfully"])


class AccountRecomputeResponse(BaseModel):
    """
    Response after rebuilding an account's balance from its transactions.
    """
    status: Literal["RECOMPUTED"] = Field("RECOMPUTED", description="Indicates the balance was rebuilt")
    account_id: str = Field(..., description="Account UUID")
    balance: float = Field(..., description="Balance derived from the account's transactions")


# --- Account list response ---

class AccountListResponse(BaseModel):
    """
    Response for listing user accounts.
    """
    accounts: list[AccountResponse] = Field(..., description="List of user's accounts")
    count: int = Field(..., description="Total number of accounts returned")
    total_balance: float = Field(..., description="Sum of balances of the returned accounts")
    limit: int = Field(..., description="Maximum number of accounts requested")
    offset: int = Field(..., description="Number of accounts skipped (pagination offset)")
