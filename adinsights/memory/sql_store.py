from __future__ import annotations

import uuid
from contextlib import AbstractContextManager
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from adinsights.memory.base import OutcomeRecord, RecommendationRecord, UnknownRecommendationError
from adinsights.models import Recommendation, RecommendationOutcome

SessionFactory = Callable[[], AbstractContextManager[Session]]


def _to_record(row: Recommendation) -> RecommendationRecord:
    outcome = None
    if row.outcome is not None:
        outcome = OutcomeRecord(
            actual_results=dict(row.outcome.actual_results or {}),
            was_successful=row.outcome.was_successful,
            accuracy_score=row.outcome.accuracy_score,
            created_at=row.outcome.created_at,
        )
    return RecommendationRecord(
        id=row.id,
        account_id=row.account_id,
        recommendation=dict(row.payload or {}),
        created_at=row.created_at,
        status=row.status,
        outcome=outcome,
    )


class SqlRecommendationStore:
    """Recommendation memory persisted in the metadata database."""

    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        if session_factory is None:
            from adinsights.db.session import db_session

            session_factory = db_session
        self.session_factory = session_factory

    def record(self, account_id: str, recommendation: dict[str, Any]) -> str:
        rec_id = f"{account_id}_{uuid.uuid4().hex}"
        with self.session_factory() as session:
            session.add(Recommendation(id=rec_id, account_id=account_id, payload=dict(recommendation)))
            session.flush()
        return rec_id

    def record_outcome(self, recommendation_id: str, outcome: OutcomeRecord) -> RecommendationRecord:
        with self.session_factory() as session:
            row = session.get(Recommendation, recommendation_id)
            if row is None:
                raise UnknownRecommendationError(recommendation_id)
            # one outcome row per recommendation; a repeated report overwrites it
            if row.outcome is None:
                row.outcome = RecommendationOutcome()
            row.outcome.actual_results = dict(outcome.actual_results)
            row.outcome.was_successful = outcome.was_successful
            row.outcome.accuracy_score = outcome.accuracy_score
            row.outcome.reason = outcome.reason
            row.outcome.created_at = outcome.created_at
            row.status = "completed"
            session.flush()
            return _to_record(row)

    def get(self, recommendation_id: str) -> RecommendationRecord | None:
        with self.session_factory() as session:
            row = session.get(Recommendation, recommendation_id)
            return _to_record(row) if row is not None else None

    def list_for_account(self, account_id: str) -> list[RecommendationRecord]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(Recommendation)
                .options(selectinload(Recommendation.outcome))
                .where(Recommendation.account_id == account_id)
                .order_by(Recommendation.created_at)
            ).all()
            return [_to_record(r) for r in rows]
