"""
Pytest configuration for fintrack backend tests.

Sets up test environment and global fixtures.
"""
import copy
import itertools
import os
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import pytest
from unittest.mock import MagicMock

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_PUBLISHABLE_KEY", "test-publishable-key")
os.environ.setdefault("AI_GATEWAY_URL", "https://gateway.test/v1/chat/completions")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-gateway-key")


class FakeResult:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data


def _sort_key(value: Any) -> Any:
    try:
        return (0, Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return (1, str(value))


class FakeQuery:
    """Chainable subset of the PostgREST query builder used by the services."""

    def __init__(self, store: "FakeSupabaseClient", table: str):
        self._store = store
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Any] = []
        self._orders: List[Any] = []
        self._columns = "*"
        self._range: Optional[tuple] = None

    def select(self, *columns: str) -> "FakeQuery":
        self._op = "select"
        self._columns = ",".join(columns) or "*"
        return self

    def insert(self, data: Dict[str, Any]) -> "FakeQuery":
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = data
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: str(row.get(column)) >= str(value))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: str(row.get(column)) <= str(value))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        term = pattern.strip("%").lower()
        self._filters.append(lambda row: term in str(row.get(column) or "").lower())
        return self

    def or_(self, expression: str) -> "FakeQuery":
        # 'col.ilike.%term%' and 'col.in.(a,b)' alternatives are supported
        alternatives = []
        for part in re.split(r",(?![^()]*\))", expression):
            column, op, pattern = part.split(".", 2)
            if op == "in":
                values = set(pattern.strip("()").split(","))
                alternatives.append(lambda row, c=column, v=values: str(row.get(c)) in v)
            else:
                term = pattern.strip("%").lower()
                alternatives.append(
                    lambda row, c=column, t=term: t in str(row.get(c) or "").lower()
                )

        def matches(row: Dict[str, Any]) -> bool:
            return any(alternative(row) for alternative in alternatives)

        self._filters.append(matches)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self._store.tables.setdefault(self._table, [])
        return [row for row in rows if all(f(row) for f in self._filters)]

    def execute(self) -> FakeResult:
        self._store.calls.append((self._table, self._op))
        if (self._table, self._op) in self._store.fail_on:
            raise Exception(f"simulated {self._op} failure on {self._table}")

        if self._op == "insert":
            row = dict(self._payload)
            row.setdefault("id", f"{self._table}-{next(self._store._ids)}")
            row.setdefault("created_at", f"2025-10-01T00:00:{next(self._store._ticks):02d}Z")
            self._store.tables.setdefault(self._table, []).append(row)
            return FakeResult([copy.deepcopy(row)])

        if self._op == "update":
            rows = self._matching()
            for row in rows:
                row.update(self._payload)
            return FakeResult(copy.deepcopy(rows))

        if self._op == "delete":
            rows = self._matching()
            table = self._store.tables[self._table]
            self._store.tables[self._table] = [r for r in table if r not in rows]
            return FakeResult(copy.deepcopy(rows))

        rows = self._matching()
        for column, desc in reversed(self._orders):
            rows = sorted(rows, key=lambda r: _sort_key(r.get(column)), reverse=desc)
        if self._range is not None:
            start, end = self._range
            rows = rows[start:end + 1]
        rows = copy.deepcopy(rows)
        if "accounts(" in self._columns:
            for row in rows:
                row["accounts"] = self._store.embedded_account(row.get("account_id"))
        return FakeResult(rows)


class FakeSupabaseClient:
    """
    In-memory stand-in for a user-scoped Supabase client.

    fail_on holds (table, operation) pairs whose execute() raises.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"accounts": [], "transactions": []}
        self.calls: List[tuple] = []
        self.fail_on: set = set()
        self._ids = itertools.count(1)
        self._ticks = itertools.count(0)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def add_account(
        self,
        account_id: str,
        balance: str = "0.00",
        user_id: str = "test-user-id",
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        row = {
            "id": account_id,
            "user_id": user_id,
            "name": name or account_id,
            "type": "bank",
            "balance": balance,
            "currency": "VND",
            "color": "#10B981",
            "created_at": f"2025-09-01T00:00:{next(self._ticks):02d}Z",
        }
        self.tables["accounts"].append(row)
        return row

    def embedded_account(self, account_id: Any) -> Optional[Dict[str, Any]]:
        for row in self.tables["accounts"]:
            if row["id"] == account_id:
                return {"name": row["name"], "currency": row["currency"]}
        return None

    def balance_of(self, account_id: str) -> Decimal:
        for row in self.tables["accounts"]:
            if row["id"] == account_id:
                return Decimal(str(row["balance"]))
        raise KeyError(account_id)

    def writes_to(self, table: str) -> int:
        return sum(1 for t, op in self.calls if t == table and op in ("insert", "update", "delete"))


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client for testing query construction.
    Returns a MagicMock that simulates Supabase client behavior.
    """
    mock_client = MagicMock()
    return mock_client


@pytest.fixture
def fake_supabase():
    """In-memory Supabase client with 'accounts' and 'transactions' tables."""
    return FakeSupabaseClient()
