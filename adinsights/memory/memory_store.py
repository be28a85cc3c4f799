from __future__ import annotations

import uuid
from typing import Any

from adinsights.memory.base import OutcomeRecord, RecommendationRecord, UnknownRecommendationError


class InMemoryRecommendationStore:
    def __init__(self) -> None:
        self._records: dict[str, RecommendationRecord] = {}

    def record(self, account_id: str, recommendation: dict[str, Any]) -> str:
        rec_id = f"{account_id}_{uuid.uuid4().hex}"
        self._records[rec_id] = RecommendationRecord(id=rec_id, account_id=account_id, recommendation=dict(recommendation))
        return rec_id

    def record_outcome(self, recommendation_id: str, outcome: OutcomeRecord) -> RecommendationRecord:
        rec = self._records.get(recommendation_id)
        if rec is None:
            raise UnknownRecommendationError(recommendation_id)
        rec.outcome = outcome
        rec.status = "completed"
        return rec

    def get(self, recommendation_id: str) -> RecommendationRecord | None:
        return self._records.get(recommendation_id)

    def list_for_account(self, account_id: str) -> list[RecommendationRecord]:
        return [r for r in self._records.values() if r.account_id == account_id]
