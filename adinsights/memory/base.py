from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnknownRecommendationError(LookupError):
    def __init__(self, recommendation_id: str) -> None:
        super().__init__(f"Unknown recommendation {recommendation_id}")
        self.recommendation_id = recommendation_id


@dataclass
class OutcomeRecord:
    actual_results: dict[str, Any]
    was_successful: bool
    accuracy_score: float
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def reason(self) -> str:
        return str(self.actual_results.get("reason") or "Unknown")


@dataclass
class RecommendationRecord:
    id: str
    account_id: str
    recommendation: dict[str, Any]
    created_at: datetime = field(default_factory=_utcnow)
    status: str = "pending"
    outcome: Optional[OutcomeRecord] = None

    @property
    def type(self) -> str:
        return str(self.recommendation.get("type") or "general")

    @property
    def action(self) -> Any:
        return self.recommendation.get("action")


class RecommendationStore(Protocol):
    def record(self, account_id: str, recommendation: dict[str, Any]) -> str:
        ...

    def record_outcome(self, recommendation_id: str, outcome: OutcomeRecord) -> RecommendationRecord:
        ...

    def get(self, recommendation_id: str) -> RecommendationRecord | None:
        ...

    def list_for_account(self, account_id: str) -> list[RecommendationRecord]:
        ...
