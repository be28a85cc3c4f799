from __future__ import annotations

from adinsights.ads.client import GoogleAdsClient
from adinsights.agent.pipeline import AnalysisPipeline
from adinsights.config import settings
from adinsights.memory.base import RecommendationStore
from adinsights.memory.service import LearningService


def get_recommendation_store() -> RecommendationStore:
    if settings.memory_provider == "memory":
        from adinsights.memory.memory_store import InMemoryRecommendationStore

        return InMemoryRecommendationStore()

    from adinsights.memory.sql_store import SqlRecommendationStore

    return SqlRecommendationStore()


ads_client = GoogleAdsClient()
analysis_pipeline = AnalysisPipeline(executor=ads_client.execute)
learning_service = LearningService(store=get_recommendation_store())


def get_ads_client() -> GoogleAdsClient:
    return ads_client


def get_pipeline() -> AnalysisPipeline:
    return analysis_pipeline


def get_learning_service() -> LearningService:
    return learning_service
