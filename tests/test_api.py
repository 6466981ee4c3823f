"""API endpoint tests for the Financial Aggregator service."""
import random
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from aggregator import metrics
from aggregator.config import Settings
from aggregator.main import create_app
from aggregator.services import AccountStore, RefreshSimulator, TransactionStore


def build_client(seed: int = 42) -> TestClient:
    """Create a client over fresh seed data with a deterministic refresh."""
    account_store = AccountStore(simulator=RefreshSimulator(rng=random.Random(seed)))
    return TestClient(create_app(account_store=account_store, transaction_store=TransactionStore()))


@pytest.fixture
def client():
    return build_client()


def http_request_endpoints() -> set[str]:
    """Every endpoint label currently recorded by the request counter."""
    return {
        sample.labels["endpoint"]
        for family in metrics.HTTP_REQUESTS.collect()
        for sample in family.samples
        if sample.name == "http_requests_total"
    }


class TestHealthEndpoint:
    """Test the health check endpoint."""

    def setup_method(self):
        self.client = build_client()

    def test_health_check(self):
        """Health endpoint should report healthy with an RFC 3339 timestamp."""
        response = self.client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        parsed = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        assert parsed.tzinfo is not None


class TestMetricsEndpoint:
    """Test the Prometheus metrics endpoint."""

    def setup_method(self):
        self.client = build_client()

    def test_metrics_endpoint(self):
        """Metrics endpoint should return Prometheus format."""
        self.client.get("/api/accounts")
        response = self.client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "aggregator_refresh_total" in response.text

    def test_endpoint_label_is_route_template(self):
        """Path IDs must not become label values."""
        for i in range(50):
            self.client.get(f"/api/transactions/random_{i}")

        endpoints = http_request_endpoints()
        assert "/api/transactions/{transaction_id}" in endpoints
        assert not any("random_" in endpoint for endpoint in endpoints)

    def test_unmatched_paths_share_one_label(self):
        before = http_request_endpoints()
        for i in range(20):
            self.client.get(f"/junk/{i}")

        added = http_request_endpoints() - before
        assert added <= {"unmatched"}
        assert "unmatched" in http_request_endpoints()
        assert not any(endpoint.startswith("/junk") for endpoint in http_request_endpoints())


class TestAccountsEndpoint:
    """Test the /api/accounts endpoints."""

    def setup_method(self):
        self.client = build_client()

    def test_list_accounts(self):
        response = self.client.get("/api/accounts")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Accounts retrieved successfully"
        assert len(body["data"]) == 6
        assert {a["id"] for a in body["data"]} == {f"acc_00{i}" for i in range(1, 7)}

    def test_account_fields_are_json_native(self):
        """Balances are numbers and timestamps are ISO strings."""
        account = self.client.get("/api/accounts/acc_001").json()["data"]
        assert account["balance"] == 2500.75
        assert account["account_type"] == "checking"
        assert account["currency"] == "USD"
        assert account["is_active"] is True
        datetime.fromisoformat(account["last_updated"].replace("Z", "+00:00"))

    def test_get_account_by_id(self):
        response = self.client.get("/api/accounts/acc_003")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == "acc_003"
        assert body["data"]["balance"] == -1200.5

    def test_get_account_not_found(self):
        response = self.client.get("/api/accounts/does_not_exist")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Account not found"
        assert body["error"] == "account not found"
        assert "data" not in body

    def test_blank_account_id_is_bad_request(self):
        response = self.client.get("/api/accounts/%20")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Account ID is required"


class TestRefreshEndpoint:
    """Test POST /api/accounts/{id}/refresh."""

    def setup_method(self):
        self.client = build_client()

    def test_refresh_existing_account(self):
        response = self.client.post("/api/accounts/acc_001/refresh")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "account data refreshed successfully"
        data = body["data"]
        assert data["account_id"] == "acc_001"
        assert data["success"] is True
        assert "new_balance" in data
        assert abs(data["new_balance"] - 2500.75) <= 1.0

    def test_refresh_is_visible_to_later_reads(self):
        refreshed = self.client.post("/api/accounts/acc_002/refresh").json()["data"]
        account = self.client.get("/api/accounts/acc_002").json()["data"]
        assert account["balance"] == refreshed["new_balance"]
        assert account["last_updated"] == refreshed["last_updated"]

    def test_refresh_unknown_account(self):
        response = self.client.post("/api/accounts/does_not_exist/refresh")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "account not found"

    def test_refresh_requires_post(self):
        response = self.client.get("/api/accounts/acc_001/refresh")
        assert response.status_code == 405
        assert response.json()["success"] is False

    def test_refresh_past_deadline_returns_504(self):
        settings = Settings(request_timeout_seconds=0.05, refresh_delay_seconds=0.2)
        slow_client = TestClient(create_app(settings=settings))

        response = slow_client.post("/api/accounts/acc_001/refresh")

        assert response.status_code == 504
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Request timed out"
        assert response.headers.get("X-Request-ID")


class TestTransactionsEndpoint:
    """Test GET /api/transactions."""

    def setup_method(self):
        self.client = build_client()

    def test_default_page(self):
        body = self.client.get("/api/transactions").json()
        assert body["success"] is True
        assert len(body["data"]) == 10
        assert body["meta"] == {"total": 10, "limit": 50, "offset": 0, "pages": 1}

    def test_limit_reports_pages(self):
        body = self.client.get("/api/transactions?limit=3").json()
        assert body["meta"] == {"total": 10, "limit": 3, "offset": 0, "pages": 4}
        assert len(body["data"]) == 3

    def test_offset_pages_through_results(self):
        first = self.client.get("/api/transactions?limit=4&offset=0").json()["data"]
        second = self.client.get("/api/transactions?limit=4&offset=4").json()["data"]
        third = self.client.get("/api/transactions?limit=4&offset=8").json()["data"]
        ids = [t["id"] for t in first + second + third]
        assert len(third) == 2
        assert len(set(ids)) == 10

    def test_offset_past_end_returns_empty_page(self):
        body = self.client.get("/api/transactions?offset=25").json()
        assert body["data"] == []
        assert body["meta"]["total"] == 10
        assert body["meta"]["offset"] == 25

    def test_unparsable_paging_values_fall_back_to_defaults(self):
        body = self.client.get("/api/transactions?limit=abc&offset=-3").json()
        assert body["meta"]["limit"] == 50
        assert body["meta"]["offset"] == 0
        assert len(body["data"]) == 10

    def test_zero_limit_uses_default(self):
        body = self.client.get("/api/transactions?limit=0").json()
        assert body["meta"]["limit"] == 50

    def test_newest_first(self):
        data = self.client.get("/api/transactions").json()["data"]
        dates = [datetime.fromisoformat(t["date"].replace("Z", "+00:00")) for t in data]
        assert dates == sorted(dates, reverse=True)
        assert data[0]["id"] == "txn_002"

    def test_filters_are_conjunctive(self):
        body = self.client.get("/api/transactions?account_id=acc_001&type=debit").json()
        assert body["meta"]["total"] == 4
        for txn in body["data"]:
            assert txn["account_id"] == "acc_001"
            assert txn["type"] == "debit"

    def test_category_and_status_filters(self):
        body = self.client.get("/api/transactions?category=transfer&status=completed").json()
        assert {t["id"] for t in body["data"]} == {"txn_004", "txn_010"}

    def test_filter_values_are_case_sensitive(self):
        body = self.client.get("/api/transactions?type=DEBIT").json()
        assert body["data"] == []
        assert body["meta"]["total"] == 0
        assert body["meta"]["pages"] == 0

    def test_date_range_filters(self):
        assert self.client.get("/api/transactions?start_date=2000-01-01").json()["meta"]["total"] == 10
        assert self.client.get("/api/transactions?start_date=2999-01-01").json()["meta"]["total"] == 0
        assert self.client.get("/api/transactions?end_date=2000-01-01").json()["meta"]["total"] == 0

    def test_unparsable_dates_are_ignored(self):
        body = self.client.get("/api/transactions?start_date=yesterday&end_date=2024-13-45").json()
        assert body["meta"]["total"] == 10

    def test_repeated_queries_are_identical(self):
        first = self.client.get("/api/transactions?account_id=acc_001").json()
        second = self.client.get("/api/transactions?account_id=acc_001").json()
        assert first == second

    def test_get_transaction_by_id(self):
        response = self.client.get("/api/transactions/txn_001")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == "txn_001"
        assert data["amount"] == -45.5
        assert data["reference"] == "TXN001234567"
        assert data["status"] == "completed"

    def test_get_transaction_not_found(self):
        response = self.client.get("/api/transactions/txn_999")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Transaction not found"


class TestAccountTransactionsEndpoint:
    """Test GET /api/accounts/{id}/transactions."""

    def test_limit_caps_results(self, client):
        response = client.get("/api/accounts/acc_001/transactions?limit=2")
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 2
        assert all(t["account_id"] == "acc_001" for t in data)

    def test_default_limit_returns_all_for_account(self, client):
        data = client.get("/api/accounts/acc_001/transactions").json()["data"]
        assert {t["id"] for t in data} == {"txn_001", "txn_002", "txn_005", "txn_007", "txn_009"}

    def test_invalid_limit_is_ignored(self, client):
        data = client.get("/api/accounts/acc_001/transactions?limit=-1").json()["data"]
        assert len(data) == 5

    def test_unknown_account_returns_empty_list(self, client):
        """Unlike GET /api/accounts/{id}, an unknown account is not a 404 here."""
        response = client.get("/api/accounts/does_not_exist/transactions")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == []


class TestCrossCuttingBehaviour:
    """CORS, OPTIONS, method handling and request tracing."""

    def setup_method(self):
        self.client = build_client()

    def test_options_returns_empty_200(self):
        response = self.client.options("/api/accounts")
        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight_request(self):
        response = self.client.options(
            "/api/accounts/acc_001/refresh",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert response.content == b""
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_cors_header_on_simple_request(self):
        response = self.client.get("/api/accounts", headers={"Origin": "http://example.com"})
        assert response.headers["access-control-allow-origin"] == "*"

    def test_options_and_cors_agree_on_allowed_origins(self):
        settings = Settings(cors_allow_origins=["http://app.example"])
        client = TestClient(create_app(settings=settings))

        allowed = client.options("/api/accounts", headers={"Origin": "http://app.example"})
        assert allowed.status_code == 200
        assert allowed.headers["access-control-allow-origin"] == "http://app.example"
        assert allowed.headers["access-control-max-age"] == "300"

        denied = client.options("/api/accounts", headers={"Origin": "http://evil.example"})
        assert denied.status_code == 200
        assert "access-control-allow-origin" not in denied.headers

        simple = client.get("/api/accounts", headers={"Origin": "http://app.example"})
        assert simple.headers["access-control-allow-origin"] == "http://app.example"
        other = client.get("/api/accounts", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in other.headers

    def test_unsupported_method_returns_json_405(self):
        response = self.client.delete("/api/accounts")
        assert response.status_code == 405
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Method Not Allowed"

    def test_unknown_route_returns_json_404(self):
        response = self.client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_request_id_is_echoed(self):
        response = self.client.get("/api/accounts", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    def test_request_id_is_generated(self):
        response = self.client.get("/api/transactions")
        assert response.headers.get("X-Request-ID")
