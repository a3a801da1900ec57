"""
Tests for the dashboard summary and monthly report endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, MagicMock
from fintrack.main import app
from fintrack.auth.dependencies import get_authenticated_user, AuthenticatedUser

client = TestClient(app)


async def mock_get_authenticated_user_dependency():
    return AuthenticatedUser(user_id="test-user-id", access_token="test-access-token")


@pytest.fixture
def mock_auth():
    app.dependency_overrides[get_authenticated_user] = mock_get_authenticated_user_dependency
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def mock_get_supabase_client():
    with patch("fintrack.routes.summary.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_summary():
    return {
        "total_balance": 1250000.0,
        "accounts": [{
            "id": "account-123",
            "user_id": "test-user-id",
            "name": "Vietcombank",
            "type": "bank",
            "balance": "1250000.00",
            "currency": "VND",
            "color": "#10B981",
            "created_at": "2025-10-01T00:00:00Z",
        }],
        "recent_transactions": [{
            "id": "transaction-1",
            "user_id": "test-user-id",
            "account_id": "account-123",
            "type": "expense",
            "category": "food",
            "amount": "85000.00",
            "description": None,
            "date": "2025-10-28",
            "created_at": "2025-10-28T12:00:00Z",
        }],
        "monthly_income": 0.0,
        "monthly_expense": 85000.0,
        "top_expense_categories": [{"category": "food", "amount": 85000.0}],
    }


class TestSummary:
    """Tests for GET /summary"""

    @patch("fintrack.routes.summary.build_financial_summary")
    def test_summary_success(self, mock_build, mock_auth, mock_get_supabase_client, mock_summary):
        mock_build.return_value = mock_summary

        response = client.get("/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["total_balance"] == 1250000.0
        assert data["accounts"][0]["balance"] == 1250000.0
        assert data["recent_transactions"][0]["amount"] == 85000.0
        assert data["top_expense_categories"] == [{"category": "food", "amount": 85000.0}]

    @patch("fintrack.routes.summary.build_financial_summary")
    def test_summary_db_error(self, mock_build, mock_auth, mock_get_supabase_client):
        mock_build.side_effect = Exception("Database error")

        response = client.get("/summary")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "fetch_error"

    def test_summary_requires_auth(self):
        response = client.get("/summary", headers={"Authorization": "Token abc"})

        assert response.status_code == 401


class TestMonthlyReport:
    """Tests for GET /reports/monthly"""

    @patch("fintrack.routes.summary.build_monthly_report")
    def test_monthly_report_success(self, mock_build, mock_auth, mock_get_supabase_client):
        mock_build.return_value = {
            "month": "2025-10",
            "from_date": "2025-10-01",
            "to_date": "2025-10-31",
            "total_income": 15000000.0,
            "total_expense": 730000.0,
            "net_income": 14270000.0,
            "expense_by_category": [{"category": "bills", "amount": 500000.0}],
            "income_by_category": [{"category": "salary", "amount": 15000000.0}],
        }

        response = client.get("/reports/monthly", params={"month": "2025-10"})

        assert response.status_code == 200
        assert response.json()["net_income"] == 14270000.0
        assert mock_build.call_args.kwargs["month"] == "2025-10"

    @patch("fintrack.routes.summary.build_monthly_report")
    def test_monthly_report_bad_format(self, mock_build, mock_auth, mock_get_supabase_client):
        response = client.get("/reports/monthly", params={"month": "October"})

        assert response.status_code == 422
        mock_build.assert_not_called()

    @patch("fintrack.routes.summary.build_monthly_report")
    def test_monthly_report_invalid_month(self, mock_build, mock_auth, mock_get_supabase_client):
        mock_build.side_effect = ValueError("Invalid month '2025-13', expected YYYY-MM")

        response = client.get("/reports/monthly", params={"month": "2025-13"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_request"
