import pytest
from fastapi.testclient import TestClient

from adinsights.ads.client import UpstreamQueryError
from adinsights.agent.pipeline import AnalysisPipeline
from adinsights.api.deps import get_ads_client, get_learning_service, get_pipeline
from adinsights.main import app
from adinsights.memory.memory_store import InMemoryRecommendationStore
from adinsights.memory.service import LearningService

ROW = {
    "campaign": {"id": "1", "name": "Summer Sale"},
    "segments": {"date": "2024-07-02"},
    "metrics": {"costMicros": "5000000", "conversions": 2, "conversionsValue": 25.0, "clicks": "40", "impressions": "900"},
}


class StubExecutor:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []

    async def __call__(self, query, account_id):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.rows


class StubAdsClient(StubExecutor):
    async def execute(self, query, customer_id):
        return await self(query, customer_id)


@pytest.fixture
def client():
    learning = LearningService(store=InMemoryRecommendationStore())
    app.dependency_overrides[get_learning_service] = lambda: learning
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_executor(executor):
    app.dependency_overrides[get_pipeline] = lambda: AnalysisPipeline(executor=executor)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_ask_returns_envelope(client):
    _use_executor(StubExecutor([ROW]))
    response = client.post("/api/analysis/ask", json={"account_id": "123", "question": "how much did we spend"})
    assert response.status_code == 200
    body = response.json()
    assert body["intent"] == "single_period"
    assert body["data"]["period"]["spend"] == "5.00"
    assert body["summary"]


def test_compare_endpoint(client):
    _use_executor(StubExecutor([ROW]))
    response = client.post(
        "/api/analysis/compare",
        json={
            "account_id": "123",
            "period1": {"start": "2024-07-01", "end": "2024-07-31", "label": "July 2024"},
            "period2": {"start": "2023-07-01", "end": "2023-07-31"},
            "campaign_filter": "Summer",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["period1"]["label"] == "July 2024"
    assert body["period2"]["label"] == "2023-07-01 to 2023-07-31"
    assert body["changes"]["conversions"]["percentage"] == "0.0%"


def test_upstream_failure_maps_to_bad_gateway(client):
    error = UpstreamQueryError("Request contains an invalid argument.", details=[{"message": "bad field"}])
    _use_executor(StubExecutor(error=error))
    response = client.post("/api/analysis/ask", json={"account_id": "123", "question": "spend yoy"})
    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"] == "Request contains an invalid argument."
    assert detail["details"] == [{"message": "bad field"}]
    assert detail["hint"]


def test_campaign_search_endpoint(client):
    _use_executor(StubExecutor([ROW]))
    response = client.post(
        "/api/analysis/campaign-search",
        json={"account_id": "123", "search_text": "summer sale", "start": "2024-07-01", "end": "2024-07-31"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["totalFound"] == len(body["matches"]) > 0


def test_campaign_search_rejects_inverted_range(client):
    _use_executor(StubExecutor([ROW]))
    response = client.post(
        "/api/analysis/campaign-search",
        json={"account_id": "123", "search_text": "summer", "start": "2024-07-31", "end": "2024-07-01"},
    )
    assert response.status_code == 422


def test_seasonal_endpoint(client):
    _use_executor(StubExecutor([ROW]))
    response = client.get("/api/analysis/seasonal/123", params={"start": "2024-01-01", "end": "2024-12-31"})
    assert response.status_code == 200
    assert list(response.json()["seasons"]) == ["Summer"]


def test_execute_query_validates_before_sending(client):
    ads = StubAdsClient([ROW])
    app.dependency_overrides[get_ads_client] = lambda: ads

    response = client.post("/api/execute-query", json={"query": "DELETE FROM campaign", "customer_id": "1"})
    assert response.status_code == 400
    assert ads.queries == []

    response = client.post("/api/execute-query", json={"query": "SELECT campaign.name FROM campaign", "customer_id": "1"})
    assert response.status_code == 200
    assert response.json()["rowCount"] == 1


def test_recommendation_learning_flow(client):
    stored = client.post(
        "/api/ai/store-recommendation",
        json={"account_id": "acct", "recommendation": {"type": "budget", "action": "raise", "expectedImpact": "+10%"}},
    )
    assert stored.status_code == 200
    rec_id = stored.json()["recommendationId"]

    updated = client.post("/api/ai/update-outcome", json={"recommendation_id": rec_id, "actual_results": {"actualImpact": 12}})
    assert updated.status_code == 200
    body = updated.json()
    assert body["wasSuccessful"] is True
    assert body["learningUpdate"]["successRate"] == "100.0%"

    insights = client.get("/api/ai/insights/acct").json()
    assert insights["learningProgress"]["confidenceLevel"] == "High"
    assert insights["highConfidenceStrategies"] == ["budget"]


def test_unknown_recommendation_is_not_found(client):
    response = client.post("/api/ai/update-outcome", json={"recommendation_id": "nope", "actual_results": {}})
    assert response.status_code == 404
