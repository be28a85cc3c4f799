from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from adinsights.api.deps import get_learning_service
from adinsights.memory.base import UnknownRecommendationError
from adinsights.memory.service import LearningService
from adinsights.models import StoreRecommendationRequest, UpdateOutcomeRequest

router = APIRouter(prefix="/api/ai", tags=["memory"])


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


@router.post("/store-recommendation")
def store_recommendation(payload: StoreRecommendationRequest, service: LearningService = Depends(get_learning_service)):
    rec_id = service.store_recommendation(payload.account_id, payload.recommendation)
    return {
        "success": True,
        "recommendationId": rec_id,
        "nextSteps": "Monitor performance for 30 days, then report the actual results.",
    }


@router.post("/update-outcome")
def update_outcome(payload: UpdateOutcomeRequest, service: LearningService = Depends(get_learning_service)):
    try:
        record = service.store_outcome(payload.recommendation_id, payload.actual_results)
    except UnknownRecommendationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    insights = service.get_insights(record.account_id)
    return {
        "success": True,
        "wasSuccessful": record.outcome.was_successful,
        "accuracyScore": record.outcome.accuracy_score,
        "learningUpdate": {
            "successRate": _percent(insights["overallSuccessRate"]),
            "totalRecommendations": insights["totalRecommendations"],
            "confidenceLevel": "Growing" if insights["successfulPatterns"] else "Learning",
        },
        "insights": insights,
    }


@router.get("/insights/{account_id}")
def account_insights(account_id: str, service: LearningService = Depends(get_learning_service)):
    insights = service.get_insights(account_id)
    return {
        "success": True,
        "accountId": account_id,
        "learningProgress": {
            "totalRecommendations": insights["totalRecommendations"],
            "overallSuccessRate": _percent(insights["overallSuccessRate"]),
            "confidenceLevel": insights["confidenceLevel"],
        },
        "bestPractices": insights["bestPractices"],
        "thingsToAvoid": insights["thingsToAvoid"],
        "highConfidenceStrategies": [p["type"] for p in insights["successfulPatterns"]],
        "needMoreDataOn": [p["type"] for p in insights["riskyPatterns"]],
    }
