from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, JSON, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from adinsights.agent.dates import DateInterval


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Recommendation(Base):
    __tablename__ = "recommendations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str] = mapped_column(String(64), index=True)
    payload: Mapped[Dict[str, Any]] = mapped_column("recommendation", JSON, default=dict)
    status: Mapped[str] = mapped_column(String(32), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)

    outcome: Mapped[Optional["RecommendationOutcome"]] = relationship(
        back_populates="recommendation", cascade="all, delete-orphan", uselist=False
    )


class RecommendationOutcome(Base):
    __tablename__ = "recommendation_outcomes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    recommendation_id: Mapped[str] = mapped_column(
        ForeignKey("recommendations.id", ondelete="CASCADE"), unique=True, index=True
    )
    actual_results: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    was_successful: Mapped[bool] = mapped_column(Boolean, default=False)
    accuracy_score: Mapped[float] = mapped_column(Float, default=0.0)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    recommendation: Mapped[Recommendation] = relationship(back_populates="outcome")


class PeriodPayload(BaseModel):
    start: date
    end: date
    label: Optional[str] = None

    def to_interval(self) -> DateInterval:
        label = self.label or f"{self.start.isoformat()} to {self.end.isoformat()}"
        return DateInterval(start=self.start, end=self.end, label=label)


class AskRequest(BaseModel):
    account_id: str = Field(min_length=1)
    question: str = Field(min_length=1)


class CompareRequest(BaseModel):
    account_id: str = Field(min_length=1)
    period1: PeriodPayload
    period2: PeriodPayload
    analysis_type: str = "campaign"
    campaign_filter: Optional[str] = None


class CampaignSearchRequest(BaseModel):
    account_id: str = Field(min_length=1)
    search_text: str = Field(min_length=1)
    start: date
    end: date

    @model_validator(mode="after")
    def check_range(self) -> "CampaignSearchRequest":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def to_interval(self) -> DateInterval:
        return DateInterval(start=self.start, end=self.end, label=f"{self.start.isoformat()} to {self.end.isoformat()}")


class ExecuteQueryRequest(BaseModel):
    query: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)


class StoreRecommendationRequest(BaseModel):
    account_id: str = Field(min_length=1)
    recommendation: Dict[str, Any]


class UpdateOutcomeRequest(BaseModel):
    recommendation_id: str = Field(min_length=1)
    actual_results: Dict[str, Any]
