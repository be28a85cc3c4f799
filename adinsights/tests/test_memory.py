import pytest
from sqlalchemy.orm import sessionmaker

from adinsights.db.session import create_metadata_engine, init_metadata_db, session_scope
from adinsights.memory.base import UnknownRecommendationError
from adinsights.memory.memory_store import InMemoryRecommendationStore
from adinsights.memory.service import LearningService, calculate_accuracy, calculate_success, parse_impact
from adinsights.memory.sql_store import SqlRecommendationStore


def _build_session_factory():
    engine = create_metadata_engine("sqlite+pysqlite:///:memory:")
    init_metadata_db(engine)
    return session_scope(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True))


@pytest.fixture(params=["memory", "sql"])
def service(request):
    if request.param == "memory":
        return LearningService(store=InMemoryRecommendationStore())
    return LearningService(store=SqlRecommendationStore(session_factory=_build_session_factory()))


def test_parse_impact():
    assert parse_impact("+15%") == 15
    assert parse_impact("-2.5 pts") == -2.5
    assert parse_impact(12) == 12
    assert parse_impact("n/a") is None
    assert parse_impact(None) is None


def test_success_needs_seventy_percent_of_expected_impact():
    rec = {"expectedImpact": "+20%"}
    assert calculate_success(rec, {"actualImpact": 14})
    assert not calculate_success(rec, {"actualImpact": 13.9})


def test_success_falls_back_to_improved_flag():
    assert calculate_success({"type": "bids"}, {"improved": True})
    assert not calculate_success({"type": "bids"}, {"improved": "yes"})


def test_accuracy_is_clamped():
    rec = {"expectedImpact": "10%"}
    assert calculate_accuracy(rec, {"actualImpact": 10}) == 1
    assert calculate_accuracy(rec, {"actualImpact": 8}) == pytest.approx(0.8)
    assert calculate_accuracy(rec, {"actualImpact": 40}) == 0
    assert calculate_accuracy({"expectedImpact": "0"}, {"actualImpact": 0}) == 1
    assert calculate_accuracy({"expectedImpact": "0"}, {"actualImpact": 1}) == 0
    assert calculate_accuracy({}, {"improved": False}) == 0


def test_store_and_complete_recommendation(service):
    rec_id = service.store_recommendation("acct-1", {"type": "budget", "action": "raise budget 10%", "expectedImpact": "+10%"})
    assert rec_id.startswith("acct-1_")
    assert service.store.get(rec_id).status == "pending"

    record = service.store_outcome(rec_id, {"actualImpact": 9})
    assert record.status == "completed"
    assert record.outcome.was_successful
    assert record.outcome.accuracy_score == pytest.approx(0.9)


def test_unknown_recommendation(service):
    with pytest.raises(UnknownRecommendationError, match="Unknown recommendation missing"):
        service.store_outcome("missing", {"improved": True})


def test_insights_summarise_patterns(service):
    budget_a = service.store_recommendation("acct-1", {"type": "budget", "action": "raise budget", "expectedImpact": "10"})
    budget_b = service.store_recommendation("acct-1", {"type": "budget", "action": "shift budget", "expectedImpact": "10"})
    keywords = service.store_recommendation("acct-1", {"type": "keywords", "action": "add negatives"})
    service.store_recommendation("acct-1", {"type": "bids", "action": "lower bids"})
    service.store_recommendation("acct-2", {"type": "budget", "action": "other account"})

    service.store_outcome(budget_a, {"actualImpact": 12})
    service.store_outcome(budget_b, {"actualImpact": 11})
    service.store_outcome(keywords, {"improved": False, "reason": "lost volume"})

    insights = service.get_insights("acct-1")
    assert insights["totalRecommendations"] == 4
    assert insights["overallSuccessRate"] == pytest.approx(2 / 3)
    assert insights["confidenceLevel"] == "Medium"
    assert [p["type"] for p in insights["successfulPatterns"]] == ["budget"]
    assert [p["type"] for p in insights["riskyPatterns"]] == ["keywords"]
    assert sorted(insights["bestPractices"]) == ["raise budget", "shift budget"]
    assert len(insights["thingsToAvoid"]) == 1
    assert insights["thingsToAvoid"][0]["action"] == "add negatives"
    assert insights["thingsToAvoid"][0]["reason"] == "lost volume"


def test_insights_for_new_account(service):
    insights = service.get_insights("nobody")
    assert insights["totalRecommendations"] == 0
    assert insights["overallSuccessRate"] == 0
    assert insights["confidenceLevel"] == "Learning"
    assert insights["thingsToAvoid"] == []


def test_repeated_outcome_replaces_the_previous_one(service):
    rec_id = service.store_recommendation("acct-1", {"type": "bids", "action": "lower bids", "expectedImpact": "10"})
    service.store_outcome(rec_id, {"actualImpact": 2, "reason": "too early"})
    record = service.store_outcome(rec_id, {"actualImpact": 10})

    assert record.outcome.was_successful
    assert service.store.get(rec_id).outcome.actual_results == {"actualImpact": 10}
    insights = service.get_insights("acct-1")
    assert insights["overallSuccessRate"] == 1
    assert insights["thingsToAvoid"] == []


def test_new_records_carry_aware_timestamps(service):
    rec_id = service.store_recommendation("acct-1", {"type": "bids"})
    record = service.store_outcome(rec_id, {"improved": True})
    assert record.outcome.created_at.tzinfo is not None
