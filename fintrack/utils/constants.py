"""
Domain constants shared by schemas and services.

Category keys are stored verbatim in transactions.category. Display labels
belong to the client and are not defined here.
"""

INCOME_CATEGORIES = ("salary", "investment", "other_income")

EXPENSE_CATEGORIES = (
    "food",
    "transport",
    "shopping",
    "entertainment",
    "bills",
    "health",
    "education",
    "other_expense",
)

CATEGORIES_BY_TYPE = {
    "income": INCOME_CATEGORIES,
    "expense": EXPENSE_CATEGORIES,
}

DEFAULT_CURRENCY = "VND"

# Largest magnitude accepted for an amount or balance
MAX_MONEY_VALUE = 1_000_000_000_000_000

# Dashboard summary limits
RECENT_TRANSACTIONS_LIMIT = 10
TOP_EXPENSE_CATEGORIES_LIMIT = 5


def validate_category(transaction_type: str, category: str) -> None:
    """Raise ValueError if category is not allowed for the transaction type."""
    allowed = CATEGORIES_BY_TYPE.get(transaction_type)
    if allowed is None:
        raise ValueError(
            f"Invalid transaction type: {transaction_type}. Must be 'income' or 'expense'"
        )
    if category not in allowed:
        raise ValueError(
            f"Category '{category}' is not valid for {transaction_type} transactions. "
            f"Allowed: {', '.join(allowed)}"
        )
