from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional

from adinsights.memory.base import (
    OutcomeRecord,
    RecommendationRecord,
    RecommendationStore,
    UnknownRecommendationError,
)

logger = logging.getLogger(__name__)

SUCCESS_THRESHOLD = 0.7
SUCCESSFUL_PATTERN_CONFIDENCE = 0.7
RISKY_PATTERN_CONFIDENCE = 0.3
NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_impact(value: Any) -> Optional[float]:
    """Read a numeric impact from values like ``"+15%"`` or ``12.5``; None when absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def _impacts(recommendation: Mapping[str, Any], actual_results: Mapping[str, Any]) -> tuple[Optional[float], Optional[float]]:
    return parse_impact(recommendation.get("expectedImpact")), parse_impact(actual_results.get("actualImpact"))


def calculate_success(recommendation: Mapping[str, Any], actual_results: Mapping[str, Any]) -> bool:
    expected, actual = _impacts(recommendation, actual_results)
    if expected is not None and actual is not None:
        return actual >= expected * SUCCESS_THRESHOLD
    return actual_results.get("improved") is True


def calculate_accuracy(recommendation: Mapping[str, Any], actual_results: Mapping[str, Any]) -> float:
    expected, actual = _impacts(recommendation, actual_results)
    if expected is not None and actual is not None:
        if expected == 0:
            return 1.0 if actual == 0 else 0.0
        accuracy = 1 - abs(expected - actual) / abs(expected)
        return max(0.0, min(1.0, accuracy))
    return 1.0 if actual_results.get("improved") is True else 0.0


def confidence_level(success_rate: float) -> str:
    if success_rate > 0.7:
        return "High"
    if success_rate > 0.4:
        return "Medium"
    return "Learning"


def _pattern_summaries(records: List[RecommendationRecord]) -> List[Dict[str, Any]]:
    grouped: Dict[str, List[RecommendationRecord]] = defaultdict(list)
    for rec in records:
        if rec.outcome is not None:
            grouped[rec.type].append(rec)

    patterns = []
    for rec_type, completed in grouped.items():
        successes = [r for r in completed if r.outcome.was_successful]
        patterns.append(
            {
                "type": rec_type,
                "successCount": len(successes),
                "failureCount": len(completed) - len(successes),
                "confidence": len(successes) / len(completed),
                "bestPractices": [r.action for r in successes if r.action is not None],
            }
        )
    return patterns


class LearningService:
    """Remembers recommendations and learns which kinds work for an account."""

    def __init__(self, store: RecommendationStore) -> None:
        self.store = store

    def store_recommendation(self, account_id: str, recommendation: Dict[str, Any]) -> str:
        rec_id = self.store.record(account_id, recommendation)
        logger.info("Stored recommendation %s for account %s", rec_id, account_id)
        return rec_id

    def store_outcome(self, recommendation_id: str, actual_results: Dict[str, Any]) -> RecommendationRecord:
        rec = self.store.get(recommendation_id)
        if rec is None:
            raise UnknownRecommendationError(recommendation_id)

        outcome = OutcomeRecord(
            actual_results=dict(actual_results),
            was_successful=calculate_success(rec.recommendation, actual_results),
            accuracy_score=calculate_accuracy(rec.recommendation, actual_results),
        )
        updated = self.store.record_outcome(recommendation_id, outcome)
        logger.info(
            "Outcome for %s: %s (accuracy %.2f)",
            recommendation_id,
            "success" if outcome.was_successful else "failure",
            outcome.accuracy_score,
        )
        return updated

    def get_insights(self, account_id: str) -> Dict[str, Any]:
        records = self.store.list_for_account(account_id)
        completed = [r for r in records if r.status == "completed" and r.outcome is not None]
        success_rate = 0.0
        if completed:
            success_rate = sum(1 for r in completed if r.outcome.was_successful) / len(completed)

        patterns = _pattern_summaries(records)
        successful = [p for p in patterns if p["confidence"] > SUCCESSFUL_PATTERN_CONFIDENCE]
        risky = [p for p in patterns if p["confidence"] < RISKY_PATTERN_CONFIDENCE]
        things_to_avoid = [
            {
                "type": r.type,
                "action": r.action,
                "reason": r.outcome.reason,
                "timestamp": r.outcome.created_at.isoformat(),
            }
            for r in completed
            if not r.outcome.was_successful
        ]

        return {
            "accountId": account_id,
            "totalRecommendations": len(records),
            "overallSuccessRate": success_rate,
            "confidenceLevel": confidence_level(success_rate),
            "patterns": patterns,
            "successfulPatterns": successful,
            "riskyPatterns": risky,
            "bestPractices": [action for p in successful for action in p["bestPractices"]],
            "thingsToAvoid": things_to_avoid,
        }
