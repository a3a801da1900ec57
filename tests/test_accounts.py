"""
Tests for account CRUD endpoints.

Tests cover:
- Account creation with opening balance
- Account listing with total balance
- Account retrieval by ID
- Account updates, including direct balance reset
- Account deletion
- Balance recompute
- Error cases
"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from unittest.mock import patch, MagicMock
from fintrack.main import app
from fintrack.auth.dependencies import get_authenticated_user, AuthenticatedUser
from fintrack.services import AccountNotFoundError, BalanceReconciliationError

client = TestClient(app)


async def mock_get_authenticated_user_dependency():
    """Mock dependency that returns test AuthenticatedUser."""
    return AuthenticatedUser(
        user_id="test-user-id",
        access_token="test-access-token"
    )


@pytest.fixture
def mock_auth():
    """Override get_authenticated_user dependency."""
    app.dependency_overrides[get_authenticated_user] = mock_get_authenticated_user_dependency
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def mock_account():
    """Mock account data."""
    return {
        "id": "account-123",
        "user_id": "test-user-id",
        "name": "Vietcombank",
        "type": "bank",
        "balance": "1500000.00",
        "currency": "VND",
        "color": "#10B981",
        "created_at": "2025-10-05T10:00:00Z",
    }


@pytest.fixture
def mock_get_supabase_client():
    with patch("fintrack.routes.accounts.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


class TestListAccounts:
    """Tests for GET /accounts"""

    @patch("fintrack.routes.accounts.get_user_accounts")
    def test_list_accounts_success(self, mock_get_accounts, mock_auth, mock_get_supabase_client, mock_account):
        second = {**mock_account, "id": "account-456", "name": "Wallet", "type": "cash", "balance": "-20000.50"}
        mock_get_accounts.return_value = [mock_account, second]

        response = client.get("/accounts")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["total_balance"] == pytest.approx(1479999.50)
        assert data["accounts"][0]["balance"] == 1500000.0

    @patch("fintrack.routes.accounts.get_user_accounts")
    def test_list_accounts_db_error(self, mock_get_accounts, mock_auth, mock_get_supabase_client):
        mock_get_accounts.side_effect = Exception("Database error")

        response = client.get("/accounts")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "fetch_error"


class TestCreateAccount:
    """Tests for POST /accounts"""

    @patch("fintrack.routes.accounts.create_account")
    def test_create_account_with_defaults(self, mock_create, mock_auth, mock_get_supabase_client, mock_account):
        mock_create.return_value = {**mock_account, "balance": "0.00"}

        response = client.post("/accounts", json={"name": "Vietcombank"})

        assert response.status_code == 201
        assert response.json()["status"] == "CREATED"
        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["account_type"] == "bank"
        assert call_kwargs["currency"] == "VND"
        assert call_kwargs["balance"] == 0.0

    @patch("fintrack.routes.accounts.create_account")
    def test_create_account_opening_balance(self, mock_create, mock_auth, mock_get_supabase_client, mock_account):
        mock_create.return_value = mock_account

        response = client.post(
            "/accounts",
            json={"name": "Vietcombank", "type": "bank", "balance": 1500000, "color": "#10b981"},
        )

        assert response.status_code == 201
        assert response.json()["account"]["balance"] == 1500000.0
        assert mock_create.call_args.kwargs["balance"] == 1500000

    @patch("fintrack.routes.accounts.create_account")
    def test_create_account_invalid_type(self, mock_create, mock_auth, mock_get_supabase_client):
        response = client.post("/accounts", json={"name": "Gold", "type": "crypto"})

        assert response.status_code == 422
        mock_create.assert_not_called()

    @patch("fintrack.routes.accounts.create_account")
    def test_create_account_invalid_color(self, mock_create, mock_auth, mock_get_supabase_client):
        response = client.post("/accounts", json={"name": "Gold", "color": "green"})

        assert response.status_code == 422

    @pytest.mark.parametrize("balance", ["-Infinity", "NaN", "1e30", "-1e30"])
    @patch("fintrack.routes.accounts.create_account")
    def test_create_account_unrepresentable_balance_rejected(
        self, mock_create, mock_auth, mock_get_supabase_client, balance
    ):
        response = client.post(
            "/accounts",
            content=f'{{"name": "Gold", "balance": {balance}}}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        mock_create.assert_not_called()


class TestGetAccount:
    """Tests for GET /accounts/{account_id}"""

    @patch("fintrack.routes.accounts.get_account_by_id")
    def test_get_account_success(self, mock_get, mock_auth, mock_get_supabase_client, mock_account):
        mock_get.return_value = mock_account

        response = client.get("/accounts/account-123")

        assert response.status_code == 200
        assert response.json()["name"] == "Vietcombank"

    @patch("fintrack.routes.accounts.get_account_by_id")
    def test_get_account_not_found(self, mock_get, mock_auth, mock_get_supabase_client):
        mock_get.return_value = None

        response = client.get("/accounts/nonexistent")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"


class TestUpdateAccount:
    """Tests for PATCH /accounts/{account_id}"""

    @patch("fintrack.routes.accounts.update_account")
    def test_update_account_name(self, mock_update, mock_auth, mock_get_supabase_client, mock_account):
        mock_update.return_value = {**mock_account, "name": "VCB Salary"}

        response = client.patch("/accounts/account-123", json={"name": "VCB Salary"})

        assert response.status_code == 200
        assert response.json()["account"]["name"] == "VCB Salary"
        call_kwargs = mock_update.call_args.kwargs
        assert call_kwargs["name"] == "VCB Salary"
        assert "balance" not in call_kwargs

    @patch("fintrack.routes.accounts.update_account")
    def test_update_account_balance_reset(self, mock_update, mock_auth, mock_get_supabase_client, mock_account):
        mock_update.return_value = {**mock_account, "balance": "0.00"}

        response = client.patch("/accounts/account-123", json={"balance": 0})

        assert response.status_code == 200
        assert mock_update.call_args.kwargs["balance"] == 0

    def test_update_account_empty_body(self, mock_auth, mock_get_supabase_client):
        response = client.patch("/accounts/account-123", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_request"

    @patch("fintrack.routes.accounts.update_account")
    def test_update_account_infinite_balance_rejected(self, mock_update, mock_auth, mock_get_supabase_client):
        response = client.patch(
            "/accounts/account-123",
            content='{"balance": Infinity}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        mock_update.assert_not_called()

    @patch("fintrack.routes.accounts.update_account")
    def test_update_account_not_found(self, mock_update, mock_auth, mock_get_supabase_client):
        mock_update.return_value = None

        response = client.patch("/accounts/nonexistent", json={"name": "X"})

        assert response.status_code == 404


class TestDeleteAccount:
    """Tests for DELETE /accounts/{account_id}"""

    @patch("fintrack.routes.accounts.delete_account")
    def test_delete_account_success(self, mock_delete, mock_auth, mock_get_supabase_client):
        mock_delete.return_value = True

        response = client.delete("/accounts/account-123")

        assert response.status_code == 200
        assert response.json() == {
            "status": "DELETED",
            "account_id": "account-123",
            "message": "Account deleted successfully",
        }

    @patch("fintrack.routes.accounts.delete_account")
    def test_delete_account_not_found(self, mock_delete, mock_auth, mock_get_supabase_client):
        mock_delete.return_value = False

        response = client.delete("/accounts/nonexistent")

        assert response.status_code == 404


class TestRecomputeAccount:
    """Tests for POST /accounts/{account_id}/recompute"""

    @patch("fintrack.routes.accounts.recompute_account_balance")
    def test_recompute_success(self, mock_recompute, mock_auth, mock_get_supabase_client):
        mock_recompute.return_value = Decimal("-50000.00")

        response = client.post("/accounts/account-123/recompute")

        assert response.status_code == 200
        assert response.json() == {
            "status": "RECOMPUTED",
            "account_id": "account-123",
            "balance": -50000.0,
        }

    @patch("fintrack.routes.accounts.recompute_account_balance")
    def test_recompute_unknown_account(self, mock_recompute, mock_auth, mock_get_supabase_client):
        mock_recompute.side_effect = AccountNotFoundError("ghost", "not found")

        response = client.post("/accounts/ghost/recompute")

        assert response.status_code == 404

    @patch("fintrack.routes.accounts.recompute_account_balance")
    def test_recompute_store_failure_is_not_reported_as_missing(
        self, mock_recompute, mock_auth, mock_get_supabase_client
    ):
        mock_recompute.side_effect = BalanceReconciliationError("account-123", "connection reset")

        response = client.post("/accounts/account-123/recompute")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "update_error"


class TestAccountServiceQueries:
    """Service-level checks of the values written for accounts."""

    @pytest.mark.asyncio
    async def test_create_account_normalises_fields(self, supabase_client):
        from fintrack.services.account_service import create_account

        insert = supabase_client.table.return_value.insert
        insert.return_value.execute.return_value.data = [{"id": "account-1"}]

        await create_account(
            supabase_client, "test-user-id", "Cash", "cash", "vnd", "#10b981", balance=12.345
        )

        written = insert.call_args.args[0]
        assert written["currency"] == "VND"
        assert written["color"] == "#10B981"
        assert written["balance"] == "12.35"

    @pytest.mark.asyncio
    async def test_update_account_balance_written_as_numeric(self, fake_supabase):
        from fintrack.services.account_service import update_account

        fake_supabase.add_account("acc-a", balance="10.00")

        updated = await update_account(fake_supabase, "test-user-id", "acc-a", balance=-3.5)

        assert updated["balance"] == "-3.50"
